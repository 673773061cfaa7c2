"""UpgradeApplicationService against the in-memory repositories."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.qb_common.errors import (
    CompanyNotFoundError,
    CompanyNotPublicError,
    InsufficientBalanceError,
    InvalidUpgradeTypeError,
    NotCompanyOwnerError,
    PersonalAccountNotFoundError,
    UpgradeAlreadyUsedError,
    UpgradeNotAvailableError,
    UpgradeNotFoundError,
    UpgradeNotOwnedError,
    UserUpgradeNotFoundError,
)
from src.qb_ledger.domain.constants import SYSTEM_ACCOUNT_ID
from src.qb_upgrade.application.service import UpgradeApplicationService
from src.qb_upgrade.domain.models import Upgrade, UserUpgrade


def _seed_upgrades(store) -> None:
    upgrades = [
        Upgrade("UPG-REV", "Revenue Boost I", "REVENUE_BOOST", "LOW", 10, 50_000),
        Upgrade("UPG-UP", "Stock Price Boost I", "STOCK_PRICE_BOOST", "LOW", 10, 100_000),
        Upgrade("UPG-DOWN", "Stock Price Lower I", "STOCK_PRICE_LOWER", "LOW", 20, 100_000),
        Upgrade("UPG-OLD", "Retired", "REVENUE_BOOST", "HIGH", 50, 10, is_active=False),
    ]
    for upgrade in upgrades:
        store.state.upgrades[upgrade.id] = upgrade
    store.checkpoint()


def _give(store, upgrade_id: str, user_id: str = "user-1", user_upgrade_id: str = "uu-1") -> str:
    store.state.user_upgrades[user_upgrade_id] = UserUpgrade(
        id=user_upgrade_id, user_id=user_id, upgrade_id=upgrade_id, purchase_price=0
    )
    store.checkpoint()
    return user_upgrade_id


@pytest.fixture
def svc(upgrade_repo, company_repo, ledger_repo) -> UpgradeApplicationService:
    return UpgradeApplicationService(
        repo=upgrade_repo, company_repo=company_repo, ledger_repo=ledger_repo
    )


@pytest.fixture
def world(store):
    _seed_upgrades(store)
    store.add_account("personal-1", "user-1", balance=200_000)
    store.add_company("co-1", owner_id="user-1")
    store.add_product("p-1", "co-1", price=1_000, total_revenue=10_000)
    store.add_product("p-2", "co-1", price=2_000, total_revenue=999)
    store.add_product("p-3", "co-1", price=3_000, total_revenue=5_000, is_active=False)
    store.add_company("co-pub", owner_id="user-2", is_public=True, share_price=Decimal("10.0000"))
    return store


class TestCatalog:
    async def test_lists_active_only(self, svc, fake_db, world) -> None:
        upgrades = await svc.list_active_upgrades(fake_db)
        assert {u.id for u in upgrades} == {"UPG-REV", "UPG-UP", "UPG-DOWN"}


class TestPurchase:
    async def test_debits_personal_account(self, svc, fake_db, world) -> None:
        result = await svc.purchase_upgrade(fake_db, "user-1", "UPG-REV")

        assert result.is_used is False
        assert result.purchase_price_cents == 50_000
        assert world.state.balances["personal-1"] == 150_000
        assert world.state.balances[SYSTEM_ACCOUNT_ID] == 50_000
        assert world.state.ledger[-1].to_account_id == SYSTEM_ACCOUNT_ID
        owned = await svc.list_user_upgrades(fake_db, "user-1")
        assert [u.id for u in owned] == [result.id]

    async def test_insufficient_balance_rolls_back(self, svc, fake_db, world) -> None:
        await svc.purchase_upgrade(fake_db, "user-1", "UPG-UP")
        await svc.purchase_upgrade(fake_db, "user-1", "UPG-UP")

        with pytest.raises(InsufficientBalanceError):
            await svc.purchase_upgrade(fake_db, "user-1", "UPG-UP")

        assert world.state.balances["personal-1"] == 0
        assert len(world.state.user_upgrades) == 2

    async def test_inactive_upgrade(self, svc, fake_db, world) -> None:
        with pytest.raises(UpgradeNotAvailableError):
            await svc.purchase_upgrade(fake_db, "user-1", "UPG-OLD")

    async def test_unknown_upgrade(self, svc, fake_db, world) -> None:
        with pytest.raises(UpgradeNotFoundError):
            await svc.purchase_upgrade(fake_db, "user-1", "UPG-NOPE")

    async def test_no_personal_account(self, svc, fake_db, world) -> None:
        with pytest.raises(PersonalAccountNotFoundError):
            await svc.purchase_upgrade(fake_db, "user-9", "UPG-REV")


class TestRevenueBoost:
    async def test_boosts_active_products(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-REV")

        result = await svc.apply_revenue_boost(fake_db, "user-1", uu, "co-1")

        assert result.success is True
        assert result.effect_applied == "1099"
        assert world.state.products["p-1"].total_revenue == 11_000
        assert world.state.products["p-2"].total_revenue == 1_098
        assert world.state.products["p-3"].total_revenue == 5_000
        used = world.state.user_upgrades[uu]
        assert used.is_used is True
        assert used.target_company_id == "co-1"
        assert used.effect_applied == Decimal(1099)

    async def test_does_not_move_money(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-REV")
        balances = dict(world.state.balances)
        await svc.use_upgrade(fake_db, "user-1", uu, "co-1")
        assert world.state.balances == balances

    async def test_not_company_owner(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-REV")
        with pytest.raises(NotCompanyOwnerError):
            await svc.apply_revenue_boost(fake_db, "user-1", uu, "co-pub")
        assert world.state.user_upgrades[uu].is_used is False

    async def test_wrong_type(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-UP")
        with pytest.raises(InvalidUpgradeTypeError):
            await svc.apply_revenue_boost(fake_db, "user-1", uu, "co-1")
        assert world.state.user_upgrades[uu].is_used is False


class TestStockPriceEffects:
    async def test_boost_public_company(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-UP")

        result = await svc.apply_stock_price_boost(fake_db, "user-1", uu, "co-pub")

        assert result.old_price == "10.0000"
        assert result.new_price == "11.0000"
        assert result.effect_applied == "1.0000"
        assert world.state.companies["co-pub"].share_price == Decimal("11.0000")
        (history,) = world.state.price_history
        assert history.price == Decimal("11.0000")
        assert history.market_cap == Decimal("11000000.0000")
        assert history.volume == 0

    async def test_lower_public_company(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-DOWN")
        result = await svc.apply_stock_price_lower(fake_db, "user-1", uu, "co-pub")
        assert result.new_price == "8.0000"

    async def test_private_company_rejected(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-UP")
        with pytest.raises(CompanyNotPublicError):
            await svc.apply_stock_price_boost(fake_db, "user-1", uu, "co-1")
        assert world.state.user_upgrades[uu].is_used is False
        assert world.state.price_history == []

    async def test_unknown_company(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-UP")
        with pytest.raises(CompanyNotFoundError):
            await svc.use_upgrade(fake_db, "user-1", uu, "co-nope")


class TestExactlyOnce:
    async def test_second_use_rejected(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-UP")
        await svc.use_upgrade(fake_db, "user-1", uu, "co-pub")

        with pytest.raises(UpgradeAlreadyUsedError):
            await svc.use_upgrade(fake_db, "user-1", uu, "co-pub")
        assert world.state.companies["co-pub"].share_price == Decimal("11.0000")

    async def test_lost_claim_rolls_back_effect(self, company_repo, ledger_repo, fake_db, world) -> None:
        # A concurrent use flipped the row between the read and the claim
        repo = AsyncMock()
        repo.get_user_upgrade.return_value = UserUpgrade("uu-1", "user-1", "UPG-UP", 0)
        repo.get_upgrade.return_value = world.state.upgrades["UPG-UP"]
        repo.claim_user_upgrade.return_value = False
        svc = UpgradeApplicationService(
            repo=repo, company_repo=company_repo, ledger_repo=ledger_repo
        )

        with pytest.raises(UpgradeAlreadyUsedError):
            await svc.use_upgrade(fake_db, "user-1", "uu-1", "co-pub")

        assert world.state.companies["co-pub"].share_price == Decimal("10.0000")
        assert world.state.price_history == []

    async def test_not_owner(self, svc, fake_db, world) -> None:
        uu = _give(world, "UPG-UP", user_id="user-2")
        with pytest.raises(UpgradeNotOwnedError):
            await svc.use_upgrade(fake_db, "user-1", uu, "co-pub")

    async def test_unknown_user_upgrade(self, svc, fake_db, world) -> None:
        with pytest.raises(UserUpgradeNotFoundError):
            await svc.use_upgrade(fake_db, "user-1", "uu-missing", "co-pub")
