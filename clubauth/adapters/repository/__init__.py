"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryAccountRepository, InMemoryOtpRepository
from .postgres import PostgresAccountRepository, PostgresOtpRepository, run_migrations

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryOtpRepository",
    "PostgresAccountRepository",
    "PostgresOtpRepository",
    "run_migrations",
]
