"""Root conftest - shared ledger fixtures.

Invariants:
    - Every test gets a fresh runtime (engine + in-memory registry + gateway)
    - Time is driven by a FakeClock; no test depends on the wall clock
"""

import os

import pytest

# Ensure tests never reach a real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")

from invoice_ledger.services.ledger_runtime import build_runtime  # noqa: E402
from tests.ledger_fixtures import DOC_HASH, ISSUER, MATURITY, FakeClock  # noqa: E402


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runtime(clock):
    return build_runtime(clock=clock)


@pytest.fixture
def engine(runtime):
    return runtime.engine


@pytest.fixture
def registry(runtime):
    return runtime.registry


@pytest.fixture
def gateway(runtime):
    return runtime.gateway


@pytest.fixture
def funded_issuer(engine):
    """Issuer with 5e18 collateral deposited."""
    engine.deposit_collateral(ISSUER, 5 * 10**18)
    return ISSUER


@pytest.fixture
def issued_invoice(engine, funded_issuer):
    """Invoice 1: 10 tokens at 1000, maturing in 30 days."""
    return engine.create_invoice_token(
        funded_issuer, 1, 10_000, 1000, 10, MATURITY, DOC_HASH,
    )
