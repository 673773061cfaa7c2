"""Pydantic schemas for qb_upgrade API.

Decimal values (share prices, stock effects) are rendered as strings so no
precision is lost to float.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.qb_common.cents import cents_to_display
from src.qb_common.datetime_utils import isoformat_or_empty
from src.qb_upgrade.domain.models import Upgrade, UpgradeUseResult, UserUpgrade


def _decimal_or_none(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


class UseUpgradeRequest(BaseModel):
    user_upgrade_id: str = Field(..., min_length=1, max_length=64)
    company_id: str = Field(..., min_length=1, max_length=64)


class UpgradeResponse(BaseModel):
    id: str
    name: str
    description: str | None
    upgrade_type: str
    tier: str
    effect_percentage: int
    price_cents: int
    price_display: str

    @classmethod
    def from_domain(cls, upgrade: Upgrade) -> "UpgradeResponse":
        return cls(
            id=upgrade.id,
            name=upgrade.name,
            description=upgrade.description,
            upgrade_type=upgrade.upgrade_type,
            tier=upgrade.tier,
            effect_percentage=upgrade.effect_percentage,
            price_cents=upgrade.price,
            price_display=cents_to_display(upgrade.price),
        )


class UserUpgradeResponse(BaseModel):
    id: str
    upgrade_id: str
    purchase_price_cents: int
    is_used: bool
    used_at: str
    target_company_id: str | None
    effect_applied: str | None
    purchased_at: str

    @classmethod
    def from_domain(cls, user_upgrade: UserUpgrade) -> "UserUpgradeResponse":
        return cls(
            id=user_upgrade.id,
            upgrade_id=user_upgrade.upgrade_id,
            purchase_price_cents=user_upgrade.purchase_price,
            is_used=user_upgrade.is_used,
            used_at=isoformat_or_empty(user_upgrade.used_at),
            target_company_id=user_upgrade.target_company_id,
            effect_applied=_decimal_or_none(user_upgrade.effect_applied),
            purchased_at=isoformat_or_empty(user_upgrade.purchased_at),
        )


class UseUpgradeResponse(BaseModel):
    success: bool
    message: str
    effect_applied: str
    old_price: str | None = None
    new_price: str | None = None

    @classmethod
    def from_domain(cls, result: UpgradeUseResult) -> "UseUpgradeResponse":
        return cls(
            success=result.success,
            message=result.message,
            effect_applied=str(result.effect_applied),
            old_price=_decimal_or_none(result.old_price),
            new_price=_decimal_or_none(result.new_price),
        )
