"""Service test fixtures - async DB, FastAPI test client, orchestrator fakes.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db_manager dependency overridden to use the test engine
    - Orchestrator collaborators are in-process fakes (tests/services/fakes.py)

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for repository and route tests
"""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from httpx import ASGITransport, AsyncClient

from entry_gate.db.base import Base
from entry_gate.infrastructure.database import DatabaseSessionManager, get_db_manager
from entry_gate.infrastructure.reconciliation_repository import SqlReconciliationLog
import entry_gate.infrastructure.database as db_module
import entry_gate.models  # noqa: F401
from entry_gate.main import app
from entry_gate.services.credentials import BearerCredentialProvider
from entry_gate.services.payment_orchestrator import GateConfig, PaymentOrchestrator

from tests.services.fakes import (
    FakeIssuer, FakeLedger, FakeProfile, FakeReconciliationLog,
)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def test_manager(test_engine):
    return DatabaseSessionManager.from_engine(test_engine)


@pytest.fixture
def reconciliation_log(test_manager):
    return SqlReconciliationLog(test_manager)


@pytest.fixture
async def client(test_manager):
    """FastAPI test client with the DB manager overridden."""
    app.dependency_overrides[get_db_manager] = lambda: test_manager

    original_manager = db_module.db_manager
    db_module.db_manager = test_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# --- Orchestrator ------------------------------------------------------------

@pytest.fixture
def gate_config():
    return GateConfig(
        entry_amount=Decimal("0.01"),
        destination_address="treasury",
        game_id="wegen-race",
        game_title="Wegen Race",
        game_category="picker",
    )


@pytest.fixture
def credentials():
    return BearerCredentialProvider()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def issuer():
    return FakeIssuer()


@pytest.fixture
def profile():
    return FakeProfile(picker=2)


@pytest.fixture
def recon():
    return FakeReconciliationLog()


@pytest.fixture
def orchestrator(credentials, ledger, issuer, gate_config, profile, recon):
    orch = PaymentOrchestrator(
        credentials, ledger, issuer, gate_config,
        profile=profile, reconciliation=recon,
    )
    yield orch
    orch.close()


@pytest.fixture
def logged_in(credentials):
    """Provider holding a fresh bearer token."""
    credentials.update("token-abc")
    return credentials
