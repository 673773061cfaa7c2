"""Domain models for qb_company — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Company:
    id: str
    name: str
    ticker: str               # unique, upper-case
    owner_id: str
    account_id: str
    is_public: bool = False
    share_price: Decimal = Decimal("0.01")   # dollars, NUMERIC(20,4)
    total_shares: int = 1_000_000
    went_public_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class Product:
    id: str
    company_id: str
    name: str
    price: int                # cents
    description: str | None = None
    is_active: bool = True
    total_sales: int = 0      # units
    total_revenue: int = 0    # cents
    total_costs: int = 0      # cents
    created_at: datetime | None = None


@dataclass
class ProductCounterDelta:
    """Increments applied to one product's counters by a settlement tick."""

    product_id: str
    sales: int
    revenue: int
    costs: int


@dataclass
class PriceHistoryEntry:
    company_id: str
    price: Decimal
    market_cap: Decimal
    volume: int = 0
    id: int | None = None
    recorded_at: datetime | None = None
