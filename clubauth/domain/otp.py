"""
One-time code store - issue, consume, and invalidate time-bound codes.

Codes are six ASCII digits kept as strings so leading zeros survive.
Each code is valid for a fixed window after issue and may be consumed
exactly once. Issuing a new code for an email supersedes every earlier
one, so at most one valid code exists per email.

Expiry is checked explicitly on every consume; a record that still
exists past its window is rejected the same way as a wrong code.
"""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .ports import OtpRepository

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OtpStore:
    """
    Domain service for one-time codes.

    Owns code generation and the expiry rule; persistence and atomicity
    are delegated to the repository.
    """

    repository: OtpRepository
    ttl: timedelta = timedelta(minutes=10)
    length: int = 6
    clock: Callable[[], datetime] = field(default=utc_now)

    def issue(self, email: str) -> str:
        """
        Generate a new code for email, superseding any earlier code.

        Returns:
            The code, as a zero-padded digit string
        """
        code = self._generate_code()
        self.repository.replace(email, code, self.clock())
        logger.info("Issued one-time code for %s", email)
        return code

    def consume(self, email: str, code: str) -> bool:
        """
        Consume a code if it matches and is still within its window.

        The record is removed whether it was fresh or stale, so a second
        call with the same pair always returns False.
        """
        issued_at = self.repository.take(email, code)
        if issued_at is None:
            return False
        if self.clock() > issued_at + self.ttl:
            logger.info("Rejected expired one-time code for %s", email)
            return False
        return True

    def invalidate_all(self, email: str) -> None:
        """Drop every outstanding code for email."""
        removed = self.repository.delete_all(email)
        if removed:
            logger.info("Invalidated %d one-time code(s) for %s", removed, email)

    def _generate_code(self) -> str:
        """
        Generate cryptographically secure numeric code.

        Uses secrets module for cryptographic randomness.
        Returns string to preserve leading zeros.
        """
        return "".join(secrets.choice("0123456789") for _ in range(self.length))
