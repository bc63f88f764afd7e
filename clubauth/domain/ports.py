"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the account model and the interfaces (ports) that the
domain requires from infrastructure. Adapters implement these protocols.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol
from uuid import UUID, uuid4


class AccountState(str, Enum):
    """
    Per-email lifecycle states of the authentication state machine.

    State Transitions:
    - NO_ACCOUNT -> PENDING_VERIFICATION (signup)
    - PENDING_VERIFICATION -> PENDING_VERIFICATION (re-registration replaces the account)
    - PENDING_VERIFICATION -> VERIFIED (successful one-time code verification)
    - any -> NO_ACCOUNT (account deleted by its owner)

    VERIFIED never returns to PENDING_VERIFICATION.
    """

    NO_ACCOUNT = "NO_ACCOUNT"
    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"


@dataclass
class Account:
    """A registered club with its credentials and verification state."""

    name: str
    description: str
    email: str
    password_hash: str
    verified: bool = False
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def state(self) -> AccountState:
        return AccountState.VERIFIED if self.verified else AccountState.PENDING_VERIFICATION

    def public_view(self) -> dict[str, str]:
        """Account fields safe to return to a client (never the password hash)."""
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "description": self.description,
        }


class AccountRepository(Protocol):
    """Port interface for account persistence."""

    def get(self, account_id: UUID) -> Account | None:
        """Return the account with this id, or None."""
        ...

    def get_by_email(self, email: str) -> Account | None:
        """Return the account bound to a normalized email, or None."""
        ...

    def find_conflicts(self, email: str, name: str) -> list[Account]:
        """Return every account whose email or name collides with the given pair."""
        ...

    def insert(self, account: Account) -> bool:
        """
        Persist a new account.

        Returns:
            True if stored, False if the email or name uniqueness constraint rejected it
        """
        ...

    def delete_unverified(self, account_id: UUID) -> bool:
        """Delete the account only if it is still unverified. Returns True if deleted."""
        ...

    def set_verified(self, account_id: UUID) -> None:
        """Mark the account verified (no-op if already verified)."""
        ...

    def set_password_hash(self, account_id: UUID, password_hash: str) -> bool:
        """Replace the stored hash. Returns False if the account does not exist."""
        ...

    def delete(self, account_id: UUID) -> bool:
        """Delete the account and every member/event row it owns."""
        ...


class OtpRepository(Protocol):
    """Port interface for one-time code persistence."""

    def replace(self, email: str, code: str, issued_at: datetime) -> None:
        """
        Atomically drop every code held for the email and store the new one.

        After this call exactly one code exists for the email, even when
        several callers race on the same address.
        """
        ...

    def take(self, email: str, code: str) -> datetime | None:
        """
        Atomically remove a matching (email, code) record.

        Uses constant-time comparison on the code. Returns the record's issue
        time when it existed, or None. For any record at most one caller ever
        receives a non-None result.
        """
        ...

    def delete_all(self, email: str) -> int:
        """Delete every code held for the email. Returns the number removed."""
        ...


class EmailSender(Protocol):
    """Port interface for email delivery."""

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Send a one-time code to an email address.

        Args:
            email: Recipient email address
            code: 6-digit one-time code

        Raises:
            DeliveryError: If the message could not be delivered
        """
        ...
