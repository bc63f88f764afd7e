"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.

Adapters are constructed once during app lifespan startup and stored in
app.state; the domain services built here are cheap per-request wrappers.
"""

from datetime import timedelta

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clubauth.config.settings import Settings, get_settings
from clubauth.domain.accounts import AccountRegistry
from clubauth.domain.auth import AuthService
from clubauth.domain.exceptions import InvalidOrExpired
from clubauth.domain.otp import OtpStore
from clubauth.domain.passwords import PasswordHasher
from clubauth.domain.ports import Account, AccountRepository, EmailSender, OtpRepository
from clubauth.domain.tokens import TokenIssuer


def get_account_repository(request: Request) -> AccountRepository:
    """Get account repository from app state."""
    return request.app.state.account_repository


def get_otp_repository(request: Request) -> OtpRepository:
    """Get one-time code repository from app state."""
    return request.app.state.otp_repository


def get_email_sender(request: Request) -> EmailSender:
    """
    Get the email sender constructed at startup.

    The sender is built from settings in the lifespan handler and injected
    here, never created at import time.
    """
    return request.app.state.email_sender


def get_auth_service(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> AuthService:
    """
    Create authentication service with injected dependencies.

    Wires together the repositories, email sender and token issuer for the domain service.
    """
    accounts = AccountRegistry(
        repository=get_account_repository(request),
        hasher=PasswordHasher(rounds=settings.bcrypt_cost),
    )
    otps = OtpStore(
        repository=get_otp_repository(request),
        ttl=timedelta(seconds=settings.otp_ttl_seconds),
        length=settings.otp_length,
    )
    tokens = TokenIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(days=settings.token_ttl_days),
    )
    return AuthService(
        accounts=accounts,
        otps=otps,
        tokens=tokens,
        email_sender=get_email_sender(request),
    )


# Bearer security scheme for OpenAPI documentation; missing headers are
# handled below so they get the same 401 as bad tokens
http_bearer = HTTPBearer(auto_error=False)


def get_current_account(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    service: AuthService = Depends(get_auth_service),
) -> Account:
    """
    Resolve the bearer session token to its account.

    Returns 401 for a missing, malformed, expired or orphaned token.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return service.authenticate(credentials.credentials)
    except InvalidOrExpired:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
