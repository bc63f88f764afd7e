"""
Authentication domain service - Account verification state machine.

This module composes the account registry, the one-time code store, the
token issuer and the email sender into the six authentication entry points.

State Machine (per email address)
=================================

States:
- NO_ACCOUNT: no account is bound to the email
- PENDING_VERIFICATION: account created by signup, email not yet proven
- VERIFIED: email proven with a one-time code; login and password reset allowed

Operations:
    signup           NO_ACCOUNT | PENDING_VERIFICATION -> PENDING_VERIFICATION
    verify_otp       PENDING_VERIFICATION | VERIFIED   -> VERIFIED
    resend_otp       PENDING_VERIFICATION (code re-issued)
    login            VERIFIED (session token issued)
    forgot_password  VERIFIED (code re-issued)
    reset_password   VERIFIED (password replaced)

Every code issue supersedes the previous code for that email. A code is
consumed on first successful use, so replaying a verification fails at the
code layer even though marking an account verified is itself idempotent.

Delivery failures
=================
When the email sender raises DeliveryError the code that was just issued
is deleted before the error propagates. Any account created earlier in the
same operation is kept: it stays unverified until a new signup replaces it
or resend_otp delivers a fresh code.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from .accounts import AccountRegistry, normalize_email
from .exceptions import (
    AccountNotFound,
    DeliveryError,
    InvalidCredentials,
    InvalidOrExpired,
    NotVerified,
    NoUnverifiedAccount,
    NoVerifiedAccount,
)
from .otp import OtpStore
from .ports import Account, EmailSender
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Session token plus the account it was issued for."""

    token: str
    account: Account


@dataclass
class AuthService:
    """
    Domain service for signup, verification, login and password recovery.

    All collaborators are injected; the service holds no other state.
    """

    accounts: AccountRegistry
    otps: OtpStore
    tokens: TokenIssuer
    email_sender: EmailSender

    def signup(self, name: str, description: str, email: str, password: str) -> str:
        """
        Create an unverified account and email it a one-time code.

        Returns:
            Normalized email address

        Raises:
            DuplicateActive: If the email or name belongs to a verified account
            DeliveryError: If the code could not be sent
        """
        account = self.accounts.create(name, description, email, password)
        self._issue_and_send(account.email)
        return account.email

    def verify_otp(self, email: str, code: str) -> AuthResult:
        """
        Consume a one-time code, mark the account verified and start a session.

        Raises:
            InvalidOrExpired: Code wrong, already used, superseded or expired
            AccountNotFound: Code was valid but no account holds the email
        """
        email = normalize_email(email)
        if not self.otps.consume(email, code):
            raise InvalidOrExpired(email)

        account = self.accounts.find_by_email(email)
        if account is None:
            raise AccountNotFound(email)

        self.accounts.mark_verified(account.id)
        account.verified = True
        logger.info("Verified account %s", account.id)
        return AuthResult(token=self.tokens.issue(account.id), account=account)

    def resend_otp(self, email: str) -> None:
        """
        Re-issue a code for an account still awaiting verification.

        Raises:
            NoUnverifiedAccount: No unverified account holds the email
            DeliveryError: If the code could not be sent
        """
        email = normalize_email(email)
        account = self.accounts.find_by_email(email)
        if account is None or account.verified:
            raise NoUnverifiedAccount(email)
        self._issue_and_send(email)

    def login(self, email: str, password: str) -> AuthResult:
        """
        Check credentials of a verified account and start a session.

        Raises:
            InvalidCredentials: Unknown email or wrong password
            NotVerified: Account exists but its email is not verified
        """
        email = normalize_email(email)
        account = self.accounts.find_by_email(email)

        if account is None:
            # Always run bcrypt so unknown emails cost the same as known ones
            self.accounts.hasher.verify_dummy(password)
            logger.info("Login failed for unknown email %s", email)
            raise InvalidCredentials(email)

        if not account.verified:
            raise NotVerified(email)

        if not self.accounts.hasher.verify(password, account.password_hash):
            logger.info("Login failed for account %s", account.id)
            raise InvalidCredentials(email)

        return AuthResult(token=self.tokens.issue(account.id), account=account)

    def forgot_password(self, email: str) -> None:
        """
        Email a password-reset code to a verified account.

        Raises:
            NoVerifiedAccount: No verified account holds the email
            DeliveryError: If the code could not be sent
        """
        email = normalize_email(email)
        account = self.accounts.find_by_email(email)
        if account is None or not account.verified:
            raise NoVerifiedAccount(email)
        self._issue_and_send(email)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        """
        Consume a one-time code and replace the account's password.

        The account is checked before the code is touched, so a pending
        signup's code survives a reset attempt against it.

        Raises:
            AccountNotFound: No verified account holds the email
            InvalidOrExpired: Code wrong, already used, superseded or expired
        """
        email = normalize_email(email)
        account = self.accounts.find_by_email(email)
        if account is None or not account.verified:
            raise AccountNotFound(email)

        if not self.otps.consume(email, code):
            raise InvalidOrExpired(email)

        self.accounts.update_password(account.id, new_password)
        logger.info("Password reset for account %s", account.id)

    def authenticate(self, token: str) -> Account:
        """
        Resolve a session token to its verified account.

        Raises:
            InvalidOrExpired: Token bad or expired, or its account is gone
        """
        account_id = self.tokens.verify(token)
        account = self.accounts.find_by_id(account_id)
        if account is None or not account.verified:
            raise InvalidOrExpired("token account no longer exists")
        return account

    def delete_account(self, account_id: UUID) -> None:
        """
        Delete an account with everything it owns and its outstanding codes.

        Raises:
            AccountNotFound: If the account does not exist
        """
        account = self.accounts.find_by_id(account_id)
        if account is None:
            raise AccountNotFound(str(account_id))
        self.accounts.delete(account.id)
        self.otps.invalidate_all(account.email)

    def _issue_and_send(self, email: str) -> None:
        code = self.otps.issue(email)
        try:
            self.email_sender.send_verification_code(email, code)
        except DeliveryError:
            logger.warning("Delivery failed for %s; discarding issued code", email)
            self.otps.invalidate_all(email)
            raise
