"""
Session tokens - signed, time-bound JWTs bound to an account id.

Tokens are stateless: there is no server-side revocation list, so a
token stays valid until its expiry.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

import jwt

from .exceptions import InvalidOrExpired
from .otp import utc_now


@dataclass
class TokenIssuer:
    """Issues and verifies HMAC-signed session tokens."""

    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(days=7)
    clock: Callable[[], datetime] = field(default=utc_now)

    def issue(self, account_id: UUID) -> str:
        now = self.clock()
        claims = {
            "sub": str(account_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> UUID:
        """
        Decode a token and return the account id it carries.

        Expiry is judged against the issuer's own clock, not wall time.

        Raises:
            InvalidOrExpired: Bad signature, malformed token, or past expiry
        """
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"], "verify_exp": False, "verify_iat": False},
            )
            expires_at = int(claims["exp"])
            account_id = UUID(claims["sub"])
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise InvalidOrExpired("Invalid or expired token") from e

        if self.clock().timestamp() >= expires_at:
            raise InvalidOrExpired("Invalid or expired token")
        return account_id
