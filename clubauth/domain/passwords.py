"""
Credential hashing - bcrypt salted one-way password hashes.
"""

from dataclasses import dataclass
from functools import lru_cache

import bcrypt


@lru_cache
def _dummy_hash(rounds: int) -> str:
    """A throwaway hash at the given cost, computed once per cost factor."""
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(rounds=rounds)).decode()


@dataclass(frozen=True)
class PasswordHasher:
    """
    Hashes and verifies passwords with bcrypt.

    Every call to hash() draws a fresh salt, so equal passwords never
    produce equal hashes.
    """

    rounds: int = 10

    def hash(self, password: str) -> str:
        """Hash password using bcrypt with the configured cost factor."""
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Compare a plaintext password against a stored hash.

        bcrypt.checkpw is constant-time. A malformed hash yields False rather
        than an exception.
        """
        try:
            return bcrypt.checkpw(password.encode(), password_hash.encode())
        except ValueError:
            return False

    def verify_dummy(self, password: str) -> None:
        """
        Spend the same bcrypt work as verify() without a stored hash.

        Used when no account matches, so response time does not reveal
        whether one exists.
        """
        self.verify(password, _dummy_hash(self.rounds))
