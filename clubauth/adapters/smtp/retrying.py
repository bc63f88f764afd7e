"""
Retrying email sender - tenacity retry policy around any EmailSender.

Retries only DeliveryError, with exponential backoff, and re-raises the
last DeliveryError once attempts are exhausted. Kept outside the domain
so the authentication flow sees a single send call.
"""

import logging

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from clubauth.domain.exceptions import DeliveryError
from clubauth.domain.ports import EmailSender

logger = logging.getLogger(__name__)


class RetryingEmailSender:
    """
    Implements EmailSender protocol by delegating to another sender.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        inner: EmailSender,
        attempts: int = 3,
        wait_seconds: float = 1.0,
        max_wait_seconds: float = 10.0,
    ) -> None:
        self._inner = inner
        self._attempts = attempts
        self._wait_seconds = wait_seconds
        self._max_wait_seconds = max_wait_seconds

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self._attempts),
            wait=wait_exponential(multiplier=self._wait_seconds, max=self._max_wait_seconds),
            retry=retry_if_exception_type(DeliveryError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def send_verification_code(self, email: str, code: str) -> None:
        for attempt in self._retrying():
            with attempt:
                self._inner.send_verification_code(email, code)
