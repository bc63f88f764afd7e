"""
Shared fixtures for adversarial tests.

Each race test runs once per storage backend: the in-memory adapters
always, and PostgreSQL when it is reachable.
"""

from dataclasses import dataclass

import pytest

from clubauth.adapters.repository.memory import InMemoryAccountRepository, InMemoryOtpRepository
from clubauth.adapters.repository.postgres import PostgresAccountRepository, PostgresOtpRepository
from clubauth.domain.ports import AccountRepository, OtpRepository

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@dataclass
class Backend:
    accounts: AccountRepository
    otps: OtpRepository


@pytest.fixture(params=["memory", "postgres"])
def backend(request: pytest.FixtureRequest) -> Backend:
    """Repositories for one storage backend."""
    if request.param == "memory":
        return Backend(accounts=InMemoryAccountRepository(), otps=InMemoryOtpRepository())
    pool = request.getfixturevalue("clean_pg")
    return Backend(accounts=PostgresAccountRepository(pool), otps=PostgresOtpRepository(pool))
