"""
Domain exceptions - Semantic error types for authentication.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
"""


class AuthError(Exception):
    """Base class for authentication domain errors."""

    pass


class DuplicateActive(AuthError):
    """Name or email is already bound to a verified account."""

    pass


class InvalidOrExpired(AuthError):
    """One-time code or session token is absent, wrong, or past its window."""

    pass


class AccountNotFound(AuthError):
    """No account matches the request."""

    pass


class NoUnverifiedAccount(AuthError):
    """No account awaiting verification exists for the email."""

    pass


class NoVerifiedAccount(AuthError):
    """No verified account exists for the email."""

    pass


class InvalidCredentials(AuthError):
    """Unknown email or password mismatch."""

    pass


class NotVerified(AuthError):
    """Login attempted before the email was verified."""

    pass


class DeliveryError(AuthError):
    """The verification email could not be delivered."""

    pass
