"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for club account
registration, email verification and password recovery. It defines its
own port interfaces for infrastructure abstraction, ensuring true
hexagonal architecture decoupling.
"""

from .accounts import AccountRegistry, normalize_email
from .auth import AuthResult, AuthService
from .exceptions import (
    AccountNotFound,
    AuthError,
    DeliveryError,
    DuplicateActive,
    InvalidCredentials,
    InvalidOrExpired,
    NotVerified,
    NoUnverifiedAccount,
    NoVerifiedAccount,
)
from .otp import OtpStore
from .passwords import PasswordHasher
from .ports import Account, AccountRepository, AccountState, EmailSender, OtpRepository
from .tokens import TokenIssuer

__all__ = [
    "Account",
    "AccountNotFound",
    "AccountRegistry",
    "AccountRepository",
    "AccountState",
    "AuthError",
    "AuthResult",
    "AuthService",
    "DeliveryError",
    "DuplicateActive",
    "EmailSender",
    "InvalidCredentials",
    "InvalidOrExpired",
    "NoUnverifiedAccount",
    "NoVerifiedAccount",
    "NotVerified",
    "OtpRepository",
    "OtpStore",
    "PasswordHasher",
    "TokenIssuer",
    "normalize_email",
]
