"""Repository Protocol for the upgrade catalog and user upgrades."""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_upgrade.domain.models import Upgrade, UserUpgrade


class UpgradeRepositoryProtocol(Protocol):
    async def list_active_upgrades(self, db: AsyncSession) -> list[Upgrade]: ...

    async def get_upgrade(self, db: AsyncSession, upgrade_id: str) -> Upgrade | None: ...

    async def create_user_upgrade(
        self, db: AsyncSession, user_id: str, upgrade_id: str, purchase_price: int
    ) -> UserUpgrade: ...

    async def get_user_upgrade(
        self, db: AsyncSession, user_upgrade_id: str
    ) -> UserUpgrade | None: ...

    async def list_user_upgrades(self, db: AsyncSession, user_id: str) -> list[UserUpgrade]: ...

    async def claim_user_upgrade(
        self,
        db: AsyncSession,
        user_upgrade_id: str,
        target_company_id: str,
        effect_applied: Decimal,
    ) -> bool: ...
