"""Repository Protocol for the settlement tick journal."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_market.domain.models import PendingTick, SettlementPlan


class SettlementRepositoryProtocol(Protocol):
    async def create_tick(
        self, db: AsyncSession, tick_id: str, plan: SettlementPlan
    ) -> None: ...

    async def get_pending_ticks(self, db: AsyncSession) -> list[PendingTick]: ...

    async def claim_company_commit(
        self, db: AsyncSession, tick_id: str, company_id: str, net: int
    ) -> bool: ...

    async def committed_net_total(self, db: AsyncSession, tick_id: str) -> int: ...

    async def mark_committed(self, db: AsyncSession, tick_id: str) -> bool: ...
