"""Shared test fixtures."""

import os

# Settings require a signing secret; set it before anything imports config.settings
os.environ.setdefault("JWT_SECRET", "test-secret-key")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeCompanyRepository,
    FakeLedgerRepository,
    FakeSession,
    FakeSettlementRepository,
    FakeUpgradeRepository,
    InMemoryStore,
)


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore.with_system_account()


@pytest.fixture
def fake_db(store: InMemoryStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def ledger_repo() -> FakeLedgerRepository:
    return FakeLedgerRepository()


@pytest.fixture
def company_repo() -> FakeCompanyRepository:
    return FakeCompanyRepository()


@pytest.fixture
def settlement_repo() -> FakeSettlementRepository:
    return FakeSettlementRepository()


@pytest.fixture
def upgrade_repo() -> FakeUpgradeRepository:
    return FakeUpgradeRepository()
