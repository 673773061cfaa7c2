"""UpgradeRepository — upgrade catalog and per-user upgrade records.

Transaction ownership: the CALLER commits or rolls back.
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.errors import InternalError
from src.qb_common.id_generator import generate_id
from src.qb_upgrade.domain.models import Upgrade, UserUpgrade

_UPGRADE_COLUMNS = (
    "id, name, description, upgrade_type, tier, effect_percentage, price, is_active, created_at"
)

_USER_UPGRADE_COLUMNS = (
    "id, user_id, upgrade_id, purchase_price, is_used, used_at,"
    " target_company_id, effect_applied, purchased_at"
)

_LIST_ACTIVE_UPGRADES_SQL = text(f"""
    SELECT {_UPGRADE_COLUMNS}
    FROM upgrades
    WHERE is_active = TRUE
    ORDER BY upgrade_type ASC, price ASC
""")

_GET_UPGRADE_SQL = text(f"""
    SELECT {_UPGRADE_COLUMNS}
    FROM upgrades
    WHERE id = :upgrade_id
""")

_CREATE_USER_UPGRADE_SQL = text(f"""
    INSERT INTO user_upgrades (id, user_id, upgrade_id, purchase_price)
    VALUES (:id, :user_id, :upgrade_id, :purchase_price)
    RETURNING {_USER_UPGRADE_COLUMNS}
""")

_GET_USER_UPGRADE_SQL = text(f"""
    SELECT {_USER_UPGRADE_COLUMNS}
    FROM user_upgrades
    WHERE id = :user_upgrade_id
""")

_LIST_USER_UPGRADES_SQL = text(f"""
    SELECT {_USER_UPGRADE_COLUMNS}
    FROM user_upgrades
    WHERE user_id = :user_id
    ORDER BY purchased_at DESC, id DESC
""")

# Guarded claim: exactly one caller flips is_used
_CLAIM_USER_UPGRADE_SQL = text("""
    UPDATE user_upgrades
    SET is_used = TRUE,
        used_at = NOW(),
        target_company_id = :target_company_id,
        effect_applied = :effect_applied
    WHERE id = :user_upgrade_id AND is_used = FALSE
    RETURNING id
""")


def _row_to_upgrade(row: object) -> Upgrade:
    return Upgrade(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        upgrade_type=row.upgrade_type,  # type: ignore[attr-defined]
        tier=row.tier,  # type: ignore[attr-defined]
        effect_percentage=row.effect_percentage,  # type: ignore[attr-defined]
        price=row.price,  # type: ignore[attr-defined]
        is_active=row.is_active,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_user_upgrade(row: object) -> UserUpgrade:
    effect = row.effect_applied  # type: ignore[attr-defined]
    return UserUpgrade(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        upgrade_id=row.upgrade_id,  # type: ignore[attr-defined]
        purchase_price=row.purchase_price,  # type: ignore[attr-defined]
        is_used=row.is_used,  # type: ignore[attr-defined]
        used_at=row.used_at,  # type: ignore[attr-defined]
        target_company_id=row.target_company_id,  # type: ignore[attr-defined]
        effect_applied=Decimal(effect) if effect is not None else None,
        purchased_at=row.purchased_at,  # type: ignore[attr-defined]
    )


class UpgradeRepository:
    async def list_active_upgrades(self, db: AsyncSession) -> list[Upgrade]:
        result = await db.execute(_LIST_ACTIVE_UPGRADES_SQL)
        return [_row_to_upgrade(row) for row in result.fetchall()]

    async def get_upgrade(self, db: AsyncSession, upgrade_id: str) -> Upgrade | None:
        result = await db.execute(_GET_UPGRADE_SQL, {"upgrade_id": upgrade_id})
        row = result.fetchone()
        return _row_to_upgrade(row) if row else None

    async def create_user_upgrade(
        self, db: AsyncSession, user_id: str, upgrade_id: str, purchase_price: int
    ) -> UserUpgrade:
        result = await db.execute(
            _CREATE_USER_UPGRADE_SQL,
            {
                "id": generate_id(),
                "user_id": user_id,
                "upgrade_id": upgrade_id,
                "purchase_price": purchase_price,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("User upgrade insert returned no rows")
        return _row_to_user_upgrade(row)

    async def get_user_upgrade(
        self, db: AsyncSession, user_upgrade_id: str
    ) -> UserUpgrade | None:
        result = await db.execute(_GET_USER_UPGRADE_SQL, {"user_upgrade_id": user_upgrade_id})
        row = result.fetchone()
        return _row_to_user_upgrade(row) if row else None

    async def list_user_upgrades(self, db: AsyncSession, user_id: str) -> list[UserUpgrade]:
        result = await db.execute(_LIST_USER_UPGRADES_SQL, {"user_id": user_id})
        return [_row_to_user_upgrade(row) for row in result.fetchall()]

    async def claim_user_upgrade(
        self,
        db: AsyncSession,
        user_upgrade_id: str,
        target_company_id: str,
        effect_applied: Decimal,
    ) -> bool:
        result = await db.execute(
            _CLAIM_USER_UPGRADE_SQL,
            {
                "user_upgrade_id": user_upgrade_id,
                "target_company_id": target_company_id,
                "effect_applied": effect_applied,
            },
        )
        return result.fetchone() is not None
