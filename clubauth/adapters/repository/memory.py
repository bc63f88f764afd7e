"""
In-memory repository adapters - Implement the account and code ports.

Process-local stores for development and tests. A single lock per store
gives each operation the same atomicity the PostgreSQL adapter gets from
row locks and unique constraints.
"""

import secrets
import threading
from copy import copy
from datetime import datetime
from uuid import UUID

from clubauth.domain.ports import Account


class InMemoryAccountRepository:
    """
    Implements AccountRepository protocol with a dict keyed by account id.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Returned accounts are copies; callers never hold the stored record.
    """

    def __init__(self) -> None:
        self._accounts: dict[UUID, Account] = {}
        # Owned child rows, keyed by parent account id
        self.members: dict[UUID, list[dict]] = {}
        self.events: dict[UUID, list[dict]] = {}
        self._lock = threading.Lock()

    def get(self, account_id: UUID) -> Account | None:
        with self._lock:
            account = self._accounts.get(account_id)
            return copy(account) if account else None

    def get_by_email(self, email: str) -> Account | None:
        with self._lock:
            for account in self._accounts.values():
                if account.email == email:
                    return copy(account)
            return None

    def find_conflicts(self, email: str, name: str) -> list[Account]:
        with self._lock:
            return [
                copy(account)
                for account in self._accounts.values()
                if account.email == email or account.name == name
            ]

    def insert(self, account: Account) -> bool:
        with self._lock:
            for existing in self._accounts.values():
                if existing.email == account.email or existing.name == account.name:
                    return False
            self._accounts[account.id] = copy(account)
            return True

    def delete_unverified(self, account_id: UUID) -> bool:
        with self._lock:
            account = self._accounts.get(account_id)
            if account is None or account.verified:
                return False
            self._delete_locked(account_id)
            return True

    def set_verified(self, account_id: UUID) -> None:
        with self._lock:
            if account_id in self._accounts:
                self._accounts[account_id].verified = True

    def set_password_hash(self, account_id: UUID, password_hash: str) -> bool:
        with self._lock:
            if account_id not in self._accounts:
                return False
            self._accounts[account_id].password_hash = password_hash
            return True

    def delete(self, account_id: UUID) -> bool:
        with self._lock:
            if account_id not in self._accounts:
                return False
            self._delete_locked(account_id)
            return True

    def _delete_locked(self, account_id: UUID) -> None:
        self.members.pop(account_id, None)
        self.events.pop(account_id, None)
        del self._accounts[account_id]


class InMemoryOtpRepository:
    """
    Implements OtpRepository protocol with one (code, issued_at) slot per email.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self) -> None:
        self._codes: dict[str, tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def replace(self, email: str, code: str, issued_at: datetime) -> None:
        with self._lock:
            self._codes[email] = (code, issued_at)

    def take(self, email: str, code: str) -> datetime | None:
        with self._lock:
            record = self._codes.get(email)
            if record is None:
                return None
            stored_code, issued_at = record
            if not secrets.compare_digest(stored_code.encode(), code.encode()):
                return None
            del self._codes[email]
            return issued_at

    def delete_all(self, email: str) -> int:
        with self._lock:
            return 1 if self._codes.pop(email, None) is not None else 0
