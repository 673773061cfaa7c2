"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class AccountType(str, Enum):
    PERSONAL = "PERSONAL"
    COMPANY = "COMPANY"


class LedgerEntryType(str, Enum):
    TRANSFER = "TRANSFER"
    PRODUCT_PURCHASE = "PRODUCT_PURCHASE"
    PRODUCT_COST = "PRODUCT_COST"
    INITIAL_DEPOSIT = "INITIAL_DEPOSIT"
    STOCK_PURCHASE = "STOCK_PURCHASE"
    STOCK_SALE = "STOCK_SALE"
    # One entry per (company, product) per tick and direction; see batch_count
    MARKETPLACE_BATCH = "MARKETPLACE_BATCH"
    EXPENSE = "EXPENSE"


class PriceTier(str, Enum):
    CHEAP = "CHEAP"
    MEDIUM = "MEDIUM"
    EXPENSIVE = "EXPENSIVE"


class TickStatus(str, Enum):
    PENDING = "PENDING"
    COMMITTED = "COMMITTED"


class UpgradeType(str, Enum):
    REVENUE_BOOST = "REVENUE_BOOST"
    STOCK_PRICE_BOOST = "STOCK_PRICE_BOOST"
    STOCK_PRICE_LOWER = "STOCK_PRICE_LOWER"


class UpgradeTier(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class BalanceSyncDirection(str, Enum):
    """Which copy of the dual balance is treated as the source during repair."""
    ACCOUNT_TO_BALANCE = "ACCOUNT_TO_BALANCE"
    BALANCE_TO_ACCOUNT = "BALANCE_TO_ACCOUNT"
