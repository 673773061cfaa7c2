"""Admin application service: invariant checks and balance repair.

Repair tools are never on the hot path. Each one writes both balance copies
through the ledger repository and commits on its own.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import BalanceSyncDirection
from src.qb_common.errors import AccountNotFoundError
from src.qb_ledger.domain.repository import LedgerRepositoryProtocol
from src.qb_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)

_DUAL_WRITE_SQL = text("""
    SELECT a.id AS account_id, a.balance AS account_balance, b.balance AS cached_balance
    FROM accounts a
    LEFT JOIN balances b ON b.account_id = a.id
    WHERE b.balance IS DISTINCT FROM a.balance
    ORDER BY a.id
""")

_LEDGER_DIVERGENCE_SQL = text("""
    WITH flows AS (
        SELECT to_account_id AS account_id, amount FROM ledger_entries
        UNION ALL
        SELECT from_account_id AS account_id, -amount FROM ledger_entries
    )
    SELECT a.id AS account_id,
           a.balance AS account_balance,
           COALESCE(SUM(f.amount), 0) AS ledger_balance
    FROM accounts a
    LEFT JOIN flows f ON f.account_id = a.id
    GROUP BY a.id, a.balance
    HAVING a.balance <> COALESCE(SUM(f.amount), 0)
    ORDER BY a.id
""")

_ZERO_SUM_SQL = text("SELECT COALESCE(SUM(balance), 0) FROM accounts")

_PENDING_TICKS_SQL = text("""
    SELECT id FROM settlement_ticks WHERE status = 'PENDING' ORDER BY id
""")


class AdminService:
    def __init__(self, ledger_repo: LedgerRepositoryProtocol | None = None) -> None:
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def verify_invariants(self, db: AsyncSession) -> dict[str, Any]:
        """Dual-write, ledger-vs-cache, global zero-sum and pending ticks.

        While a tick is PENDING the system account has not been patched yet,
        so its ledger divergence and a non-zero global sum are expected until
        the tick is resumed.
        """
        violations: list[str] = []

        for row in (await db.execute(_DUAL_WRITE_SQL)).fetchall():
            violations.append(
                f"dual-write divergence on {row.account_id}: "
                f"accounts={row.account_balance} balances={row.cached_balance}"
            )

        for row in (await db.execute(_LEDGER_DIVERGENCE_SQL)).fetchall():
            violations.append(
                f"ledger divergence on {row.account_id}: "
                f"cached={row.account_balance} ledger={row.ledger_balance}"
            )

        total = int((await db.execute(_ZERO_SUM_SQL)).scalar_one())
        if total != 0:
            violations.append(f"zero-sum violated: sum of all balances = {total}")

        pending = [row.id for row in (await db.execute(_PENDING_TICKS_SQL)).fetchall()]
        for tick_id in pending:
            violations.append(f"settlement tick {tick_id} is PENDING")

        for violation in violations:
            logger.error("Invariant violation: %s", violation)
        return {"ok": not violations, "violations": violations}

    async def reconcile_balances(
        self,
        db: AsyncSession,
        direction: BalanceSyncDirection = BalanceSyncDirection.ACCOUNT_TO_BALANCE,
    ) -> dict[str, Any]:
        try:
            synced = await self._ledger.sync_balances(db, direction)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Reconciled %d balances (%s)", len(synced), direction.value)
        return {"direction": direction.value, "accounts_synced": len(synced)}

    async def recalculate_from_ledger(self, db: AsyncSession, account_id: str) -> dict[str, Any]:
        """Replay the ledger for one account and overwrite both balance copies."""
        account = await self._ledger.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        try:
            ledger_balance = await self._ledger.ledger_balance(db, account_id)
            balance = await self._ledger.overwrite_balance(db, account_id, ledger_balance)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if balance != account.balance:
            logger.warning(
                "Account %s recalculated from ledger: %d -> %d",
                account_id,
                account.balance,
                balance,
            )
        return {
            "account_id": account_id,
            "previous_balance": account.balance,
            "balance": balance,
        }
