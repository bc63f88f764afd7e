"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock for expiry tests
- Email senders that record or fail deliveries
- Domain services wired to the in-memory repositories
"""

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from clubauth.adapters.repository.memory import InMemoryAccountRepository, InMemoryOtpRepository
from clubauth.adapters.repository.postgres import run_migrations
from clubauth.config.settings import get_settings
from clubauth.domain.accounts import AccountRegistry
from clubauth.domain.auth import AuthService
from clubauth.domain.exceptions import DeliveryError
from clubauth.domain.otp import OtpStore
from clubauth.domain.passwords import PasswordHasher
from clubauth.domain.tokens import TokenIssuer

TEST_JWT_SECRET = "test-secret"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingEmailSender:
    """EmailSender that keeps every (email, code) it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send_verification_code(self, email: str, code: str) -> None:
        self.sent.append((email, code))

    def last_code(self, email: str) -> str:
        return next(code for to, code in reversed(self.sent) if to == email)


class FailingEmailSender:
    """EmailSender that always fails delivery."""

    def __init__(self) -> None:
        self.calls = 0

    def send_verification_code(self, email: str, code: str) -> None:
        self.calls += 1
        raise DeliveryError("Failed to send email")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def failing_sender() -> FailingEmailSender:
    return FailingEmailSender()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Low-cost hasher to keep tests fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def otp_repository() -> InMemoryOtpRepository:
    return InMemoryOtpRepository()


@pytest.fixture
def registry(
    account_repository: InMemoryAccountRepository, hasher: PasswordHasher
) -> AccountRegistry:
    return AccountRegistry(repository=account_repository, hasher=hasher)


@pytest.fixture
def otp_store(otp_repository: InMemoryOtpRepository, clock: FakeClock) -> OtpStore:
    return OtpStore(repository=otp_repository, clock=clock)


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret=TEST_JWT_SECRET)


@pytest.fixture
def auth_service(
    registry: AccountRegistry,
    otp_store: OtpStore,
    token_issuer: TokenIssuer,
    sender: RecordingEmailSender,
) -> AuthService:
    return AuthService(
        accounts=registry, otps=otp_store, tokens=token_issuer, email_sender=sender
    )


@pytest.fixture(scope="session")
def pg_pool() -> Generator[ConnectionPool, None, None]:
    """
    Connection pool for PostgreSQL-backed tests, with migrations applied.

    Skips the requesting test when the database is unreachable.
    """
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=False)
    try:
        pool.open(wait=True, timeout=3)
    except PoolTimeout:
        pool.close()
        pytest.skip("PostgreSQL is not reachable")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_pg(pg_pool: ConnectionPool) -> ConnectionPool:
    """Empty every table before the test."""
    with pg_pool.connection() as conn:
        conn.execute("DELETE FROM members")
        conn.execute("DELETE FROM events")
        conn.execute("DELETE FROM accounts")
        conn.execute("DELETE FROM otp_codes")
        conn.commit()
    return pg_pool
