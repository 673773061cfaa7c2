"""HTTP-level tests: auth guards, envelope and error rendering.

Services are replaced with AsyncMocks and the DB session dependency is
overridden, so no database or Redis is needed.
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import settings
from src.main import app
from src.qb_common.database import get_db_session
from src.qb_common.errors import (
    InsufficientBalanceError,
    ProductNotFoundError,
    TickInProgressError,
)
from src.qb_gateway.auth.jwt_handler import create_access_token
from src.qb_ledger.application.schemas import BalanceResponse
from src.qb_market.domain.models import SettlementPlan, TickResult


def _auth(subject: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(subject)}"}


@pytest.fixture(autouse=True)
def _no_database():
    async def _session():
        yield MagicMock()

    app.dependency_overrides[get_db_session] = _session
    yield
    app.dependency_overrides.clear()


class TestHealth:
    async def test_health(self, client) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.headers["X-Request-ID"].startswith("req_")

    async def test_request_logged(self, client, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="qb.request"):
            resp = await client.get("/health")

        record = next(r for r in caplog.records if r.name == "qb.request")
        assert record.levelno == logging.INFO
        assert "[GET] /health -> 200" in record.getMessage()
        assert resp.headers["X-Request-ID"] in record.getMessage()


class TestAuthentication:
    async def test_missing_token(self, client) -> None:
        resp = await client.get("/api/v1/accounts")
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    async def test_bad_token(self, client) -> None:
        resp = await client.get(
            "/api/v1/accounts", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401


class TestLedgerRoutes:
    async def test_balance_envelope(self, client, monkeypatch) -> None:
        service = AsyncMock()
        service.get_balance.return_value = BalanceResponse.from_cents("acct-1", 6500)
        monkeypatch.setattr("src.qb_ledger.api.router._service", service)

        resp = await client.get("/api/v1/accounts/acct-1/balance", headers=_auth("user-1"))

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["balance_display"] == "$65.00"
        assert body["request_id"] == resp.headers["X-Request-ID"]
        assert service.get_balance.await_args[0][1:] == ("user-1", "acct-1")

    async def test_app_error_rendered(self, client, monkeypatch) -> None:
        service = AsyncMock()
        service.transfer.side_effect = InsufficientBalanceError(required=500, available=100)
        monkeypatch.setattr("src.qb_ledger.api.router._service", service)

        resp = await client.post(
            "/api/v1/accounts/transfer",
            json={"from_account_id": "a", "to_account_id": "b", "amount_cents": 500},
            headers=_auth("user-1"),
        )

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == 2001
        assert body["data"] is None
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_zero_amount_rejected_by_schema(self, client) -> None:
        resp = await client.post(
            "/api/v1/accounts/transfer",
            json={"from_account_id": "a", "to_account_id": "b", "amount_cents": 0},
            headers=_auth("user-1"),
        )
        assert resp.status_code == 422


class TestCompanyRoutes:
    async def test_deactivate_product_route(self, client, monkeypatch) -> None:
        service = AsyncMock()
        service.deactivate_product.side_effect = ProductNotFoundError("p-9")
        monkeypatch.setattr("src.qb_company.api.router._service", service)

        resp = await client.delete(
            "/api/v1/companies/co-1/products/p-9", headers=_auth("user-1")
        )

        assert resp.status_code == 404
        assert resp.json()["code"] == 3005
        assert service.deactivate_product.await_args[0][1:] == ("user-1", "co-1", "p-9")


class TestSettlementRoutes:
    async def test_player_cannot_trigger(self, client) -> None:
        resp = await client.post("/api/v1/settlement/run", headers=_auth("user-1"))
        assert resp.status_code == 403
        assert resp.json()["code"] == 1002

    async def test_scheduler_triggers(self, client, monkeypatch) -> None:
        plan = SettlementPlan(
            budget=30_000_000,
            tier_budget=10_000_000,
            total_spent=0,
            net_flow=0,
            units_sold=0,
            unspent=30_000_000,
        )
        trigger = AsyncMock(return_value=TickResult(tick_id="tick-1", plan=plan))
        monkeypatch.setattr("src.qb_market.api.router.trigger_settlement", trigger)

        resp = await client.post(
            "/api/v1/settlement/run", headers=_auth(settings.SCHEDULER_SUBJECT)
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["tick_id"] == "tick-1"

    async def test_nothing_to_sell(self, client, monkeypatch) -> None:
        monkeypatch.setattr(
            "src.qb_market.api.router.trigger_settlement", AsyncMock(return_value=None)
        )
        resp = await client.post(
            "/api/v1/settlement/run", headers=_auth(settings.SCHEDULER_SUBJECT)
        )
        assert resp.json()["data"] is None
        assert resp.json()["message"] == "no active products"

    async def test_overlapping_run_is_conflict(self, client, monkeypatch) -> None:
        monkeypatch.setattr(
            "src.qb_market.api.router.trigger_settlement",
            AsyncMock(side_effect=TickInProgressError()),
        )
        resp = await client.post(
            "/api/v1/settlement/run", headers=_auth(settings.SCHEDULER_SUBJECT)
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 5002


class TestAdminRoutes:
    async def test_player_rejected(self, client) -> None:
        resp = await client.get("/api/v1/admin/invariants", headers=_auth("user-1"))
        assert resp.status_code == 403
        assert resp.json()["code"] == 1003

    async def test_admin_runs_checks(self, client, monkeypatch) -> None:
        service = AsyncMock()
        service.verify_invariants.return_value = {"ok": True, "violations": []}
        monkeypatch.setattr("src.qb_admin.api.router._service", service)

        resp = await client.get(
            "/api/v1/admin/invariants", headers=_auth(settings.ADMIN_SUBJECT)
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["ok"] is True
