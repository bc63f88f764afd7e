"""
Account registry - account records and their verification state.

Re-registration policy
======================
Email and name are each unique across all accounts. A signup that
collides with a verified account fails. A signup that collides only with
unverified accounts deletes them first, so an abandoned signup can be
retried without manual cleanup. The store's uniqueness constraints
remain the final backstop when two signups race for the same slot.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from .exceptions import AccountNotFound, DuplicateActive
from .passwords import PasswordHasher
from .ports import Account, AccountRepository

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


@dataclass
class AccountRegistry:
    """Owns account records; all account mutation goes through here."""

    repository: AccountRepository
    hasher: PasswordHasher

    def create(self, name: str, description: str, email: str, password: str) -> Account:
        """
        Create a new unverified account.

        Raises:
            DuplicateActive: If the email or name belongs to a verified account,
                or a concurrent signup claimed it first
        """
        email = normalize_email(email)
        name = name.strip()

        conflicts = self.repository.find_conflicts(email, name)
        if any(existing.verified for existing in conflicts):
            raise DuplicateActive(email)

        for existing in conflicts:
            if self.repository.delete_unverified(existing.id):
                logger.info("Replaced unverified account %s for %s", existing.id, existing.email)

        account = Account(
            name=name,
            description=description.strip(),
            email=email,
            password_hash=self.hasher.hash(password),
        )
        if not self.repository.insert(account):
            raise DuplicateActive(email)

        logger.info("Created unverified account %s for %s", account.id, email)
        return account

    def find_by_email(self, email: str) -> Account | None:
        return self.repository.get_by_email(normalize_email(email))

    def find_by_id(self, account_id: UUID) -> Account | None:
        return self.repository.get(account_id)

    def mark_verified(self, account_id: UUID) -> None:
        """Idempotent; marking a verified account again changes nothing."""
        self.repository.set_verified(account_id)

    def update_password(self, account_id: UUID, new_password: str) -> None:
        if not self.repository.set_password_hash(account_id, self.hasher.hash(new_password)):
            raise AccountNotFound(str(account_id))

    def delete(self, account_id: UUID) -> None:
        """Delete the account along with its members and events."""
        if not self.repository.delete(account_id):
            raise AccountNotFound(str(account_id))
        logger.info("Deleted account %s", account_id)
