"""CompanyApplicationService against the in-memory repositories."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError

from src.qb_common.errors import (
    CompanyNotFoundError,
    NotCompanyOwnerError,
    ProductNotFoundError,
    TickerTakenError,
)
from src.qb_company.application.service import CompanyApplicationService


@pytest.fixture
def svc(company_repo, ledger_repo) -> CompanyApplicationService:
    return CompanyApplicationService(repo=company_repo, ledger_repo=ledger_repo)


class TestCreateCompany:
    async def test_creates_private_company_with_company_account(
        self, svc, fake_db, store
    ) -> None:
        result = await svc.create_company(fake_db, "user-1", "Acme Corp", "acme")

        assert result.ticker == "ACME"
        assert result.is_public is False
        assert result.share_price == "0.01"
        assert result.balance_cents == 0
        account = store.state.accounts[result.account_id]
        assert account.account_type == "COMPANY"
        assert account.company_id == result.id
        assert account.owner_id == "user-1"
        assert store.state.balances[result.account_id] == 0
        assert fake_db.commits == 1

    async def test_ticker_taken(self, svc, fake_db, store) -> None:
        await svc.create_company(fake_db, "user-1", "Acme Corp", "ACME")

        with pytest.raises(TickerTakenError):
            await svc.create_company(fake_db, "user-2", "Other", "acme")
        assert len(store.state.companies) == 1

    async def test_unique_violation_race_maps_to_ticker_taken(self, ledger_repo, fake_db) -> None:
        repo = AsyncMock()
        repo.ticker_exists.return_value = False
        repo.create_company.side_effect = IntegrityError("insert", {}, Exception("unique"))
        svc = CompanyApplicationService(repo=repo, ledger_repo=ledger_repo)

        with pytest.raises(TickerTakenError):
            await svc.create_company(fake_db, "user-1", "Acme", "ACME")
        assert fake_db.rollbacks == 1


class TestGetCompany:
    async def test_includes_balance(self, svc, fake_db, store) -> None:
        store.add_company("co-1", balance=12_345)
        result = await svc.get_company(fake_db, "co-1")
        assert result.balance_cents == 12_345

    async def test_missing(self, svc, fake_db) -> None:
        with pytest.raises(CompanyNotFoundError):
            await svc.get_company(fake_db, "nope")


class TestProducts:
    async def test_owner_creates_product(self, svc, fake_db, store) -> None:
        store.add_company("co-1", owner_id="user-1")

        product = await svc.create_product(fake_db, "user-1", "co-1", "Widget", None, 1999)

        assert product.price_cents == 1999
        assert product.total_sales == 0
        products = await svc.list_products(fake_db, "co-1")
        assert [p.id for p in products] == [product.id]

    async def test_non_owner_rejected(self, svc, fake_db, store) -> None:
        store.add_company("co-1", owner_id="user-1")
        with pytest.raises(NotCompanyOwnerError):
            await svc.create_product(fake_db, "user-2", "co-1", "Widget", None, 1999)
        assert store.state.products == {}

    async def test_list_products_unknown_company(self, svc, fake_db) -> None:
        with pytest.raises(CompanyNotFoundError):
            await svc.list_products(fake_db, "nope")

    async def test_deactivate_drops_product_from_catalog(
        self, svc, company_repo, fake_db, store
    ) -> None:
        store.add_company("co-1", owner_id="user-1")
        store.add_product("p-1", "co-1", price=1_000, total_revenue=5_000)
        store.add_product("p-2", "co-1", price=2_000)

        product = await svc.deactivate_product(fake_db, "user-1", "co-1", "p-1")

        assert product.is_active is False
        assert product.total_revenue_cents == 5_000
        active = await company_repo.list_active_products(fake_db)
        assert [p.id for p in active] == ["p-2"]
        assert fake_db.commits == 1

    async def test_deactivate_by_non_owner_rejected(self, svc, fake_db, store) -> None:
        store.add_company("co-1", owner_id="user-1")
        store.add_product("p-1", "co-1", price=1_000)

        with pytest.raises(NotCompanyOwnerError):
            await svc.deactivate_product(fake_db, "user-2", "co-1", "p-1")
        assert store.state.products["p-1"].is_active is True

    async def test_deactivate_other_companys_product_not_found(
        self, svc, fake_db, store
    ) -> None:
        store.add_company("co-1", owner_id="user-1")
        store.add_company("co-2", owner_id="user-2")
        store.add_product("p-2", "co-2", price=1_000)

        with pytest.raises(ProductNotFoundError):
            await svc.deactivate_product(fake_db, "user-1", "co-1", "p-2")
        assert store.state.products["p-2"].is_active is True
        assert fake_db.rollbacks == 1
