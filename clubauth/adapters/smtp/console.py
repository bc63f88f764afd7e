"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging one-time codes to stdout for development.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Selected when no SMTP host is configured. Never fails.
    """

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Log one-time code to console (simulates email delivery).

        The code is logged at INFO level to be visible in docker-compose logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit one-time code
        """
        logger.info("[VERIFICATION] Email: %s Code: %s", email, code)
