"""
SMTP email sender adapter - Implements EmailSender protocol over smtplib.

Sends the one-time code as a multipart plain-text/HTML message through a
relay (for example smtp-relay.brevo.com:587 with STARTTLS). Any SMTP or
socket failure is raised as DeliveryError so the caller can report it.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from clubauth.domain.exceptions import DeliveryError

logger = logging.getLogger(__name__)

_TEXT_BODY = """\
Club Management System - Email Verification

Please use the following code to verify your email address:

    {code}

This code will expire in {minutes} minutes.
If you didn't request this, please ignore this email.
"""

_HTML_BODY = """\
<html>
<body>
<h2>Email Verification</h2>
<p>Please use the following code to verify your email address:</p>
<p style="font-size: 32px; font-weight: bold; letter-spacing: 5px;">{code}</p>
<p><strong>This code will expire in {minutes} minutes.</strong></p>
<p>If you didn't request this, please ignore this email.</p>
</body>
</html>
"""


class SmtpEmailSender:
    """
    Implements EmailSender protocol via an SMTP relay.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Opens one connection per message.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        subject: str = "Email Verification",
        ttl_minutes: int = 10,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._subject = subject
        self._ttl_minutes = ttl_minutes
        self._timeout = timeout

    def build_message(self, email: str, code: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = self._subject
        msg["From"] = self._sender
        msg["To"] = email
        msg.attach(MIMEText(_TEXT_BODY.format(code=code, minutes=self._ttl_minutes), "plain"))
        msg.attach(MIMEText(_HTML_BODY.format(code=code, minutes=self._ttl_minutes), "html"))
        return msg

    def send_verification_code(self, email: str, code: str) -> None:
        """
        Deliver the code to email.

        Raises:
            DeliveryError: If connecting, authenticating or sending fails
        """
        msg = self.build_message(email, code)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._username:
                    server.login(self._username, self._password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Failed to send verification email to %s: %s", email, e)
            raise DeliveryError("Failed to send email") from e

        logger.info("Verification email sent to %s", email)
