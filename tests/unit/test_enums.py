"""Enum values must match the CHECK constraints in the migrations."""

from src.qb_common.enums import (
    AccountType,
    BalanceSyncDirection,
    LedgerEntryType,
    PriceTier,
    TickStatus,
    UpgradeTier,
    UpgradeType,
)


class TestEnums:
    def test_account_types(self) -> None:
        assert {t.value for t in AccountType} == {"PERSONAL", "COMPANY"}

    def test_ledger_entry_types(self) -> None:
        assert {t.value for t in LedgerEntryType} == {
            "TRANSFER",
            "PRODUCT_PURCHASE",
            "PRODUCT_COST",
            "INITIAL_DEPOSIT",
            "STOCK_PURCHASE",
            "STOCK_SALE",
            "MARKETPLACE_BATCH",
            "EXPENSE",
        }

    def test_price_tiers(self) -> None:
        assert [t.value for t in PriceTier] == ["CHEAP", "MEDIUM", "EXPENSIVE"]

    def test_tick_status(self) -> None:
        assert {t.value for t in TickStatus} == {"PENDING", "COMMITTED"}

    def test_upgrade_types(self) -> None:
        assert {t.value for t in UpgradeType} == {
            "REVENUE_BOOST",
            "STOCK_PRICE_BOOST",
            "STOCK_PRICE_LOWER",
        }

    def test_upgrade_tiers(self) -> None:
        assert {t.value for t in UpgradeTier} == {"LOW", "MEDIUM", "HIGH"}

    def test_str_enum_compares_to_value(self) -> None:
        assert AccountType.COMPANY == "COMPANY"
        assert BalanceSyncDirection("BALANCE_TO_ACCOUNT") is BalanceSyncDirection.BALANCE_TO_ACCOUNT
