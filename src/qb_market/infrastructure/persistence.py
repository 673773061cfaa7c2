"""SettlementRepository — the tick journal.

settlement_ticks holds one row per tick with its aggregated plan (JSONB).
settlement_commits holds one row per (tick, company) applied; its unique key
is what makes replaying a tick idempotent.

Transaction ownership: the CALLER commits or rolls back.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import TickStatus
from src.qb_market.domain.models import PendingTick, SettlementPlan

_CREATE_TICK_SQL = text("""
    INSERT INTO settlement_ticks (id, status, budget, payload)
    VALUES (:id, :status, :budget, CAST(:payload AS JSONB))
""")

_GET_PENDING_TICKS_SQL = text("""
    SELECT id, payload
    FROM settlement_ticks
    WHERE status = 'PENDING'
    ORDER BY id ASC
""")

_CLAIM_COMPANY_SQL = text("""
    INSERT INTO settlement_commits (tick_id, company_id, net)
    VALUES (:tick_id, :company_id, :net)
    ON CONFLICT (tick_id, company_id) DO NOTHING
    RETURNING company_id
""")

_COMMITTED_NET_SQL = text("""
    SELECT COALESCE(SUM(net), 0)
    FROM settlement_commits
    WHERE tick_id = :tick_id
""")

_MARK_COMMITTED_SQL = text("""
    UPDATE settlement_ticks
    SET status = 'COMMITTED',
        committed_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING id
""")


def _load_payload(raw: Any) -> dict[str, Any]:
    # asyncpg decodes JSONB to a dict; a plain str comes back from drivers without the codec
    if isinstance(raw, str):
        return json.loads(raw)  # type: ignore[no-any-return]
    return raw  # type: ignore[no-any-return]


class SettlementRepository:
    async def create_tick(self, db: AsyncSession, tick_id: str, plan: SettlementPlan) -> None:
        await db.execute(
            _CREATE_TICK_SQL,
            {
                "id": tick_id,
                "status": TickStatus.PENDING.value,
                "budget": plan.budget,
                "payload": json.dumps(plan.to_payload()),
            },
        )

    async def get_pending_ticks(self, db: AsyncSession) -> list[PendingTick]:
        result = await db.execute(_GET_PENDING_TICKS_SQL)
        return [
            PendingTick(tick_id=row.id, plan=SettlementPlan.from_payload(_load_payload(row.payload)))
            for row in result.fetchall()
        ]

    async def claim_company_commit(
        self, db: AsyncSession, tick_id: str, company_id: str, net: int
    ) -> bool:
        """True if this call claimed the (tick, company) unit; False if already applied."""
        result = await db.execute(
            _CLAIM_COMPANY_SQL, {"tick_id": tick_id, "company_id": company_id, "net": net}
        )
        return result.fetchone() is not None

    async def committed_net_total(self, db: AsyncSession, tick_id: str) -> int:
        result = await db.execute(_COMMITTED_NET_SQL, {"tick_id": tick_id})
        return int(result.scalar_one())

    async def mark_committed(self, db: AsyncSession, tick_id: str) -> bool:
        result = await db.execute(_MARK_COMMITTED_SQL, {"id": tick_id})
        return result.fetchone() is not None
