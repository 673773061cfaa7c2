"""Domain models for qb_upgrade — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class Upgrade:
    id: str
    name: str
    upgrade_type: str         # UpgradeType value
    tier: str                 # UpgradeTier value
    effect_percentage: int
    price: int                # cents
    description: str | None = None
    is_active: bool = True
    created_at: datetime | None = None


@dataclass
class UserUpgrade:
    id: str
    user_id: str
    upgrade_id: str
    purchase_price: int       # cents
    is_used: bool = False
    used_at: datetime | None = None
    target_company_id: str | None = None
    # cents for a revenue boost, dollars per share for stock price effects
    effect_applied: Decimal | None = None
    purchased_at: datetime | None = None


@dataclass
class UpgradeUseResult:
    success: bool
    message: str
    effect_applied: Decimal
    old_price: Decimal | None = None
    new_price: Decimal | None = None
