"""SettlementCommitter — applies a journaled SettlementPlan to the database.

Commit units:
  * one transaction per company: claim (tick, company), one balance delta of
    the company's net, one batched ledger append (revenue and cost entry per
    product), one batched product counter update;
  * one finalization transaction: flip the tick to COMMITTED and patch the
    system account by minus the sum of the claimed nets.

A unit that fails rolls back alone and the exception propagates; the tick
stays PENDING and commit_plan can be called again with the same plan.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import LedgerEntryType
from src.qb_company.domain.lifecycle import select_for_listing
from src.qb_company.domain.models import ProductCounterDelta
from src.qb_company.domain.repository import CompanyRepositoryProtocol
from src.qb_ledger.domain.constants import SYSTEM_ACCOUNT_ID
from src.qb_ledger.domain.models import NewLedgerEntry
from src.qb_ledger.domain.repository import LedgerRepositoryProtocol
from src.qb_market.domain.models import CompanyAggregate, SettlementPlan
from src.qb_market.domain.repository import SettlementRepositoryProtocol

logger = logging.getLogger(__name__)


def build_ledger_entries(tick_id: str, company: CompanyAggregate) -> list[NewLedgerEntry]:
    """Revenue (system -> company) and cost (company -> system) per product.

    A zero-amount side is omitted; this only happens for 1-2 cent products
    whose every unit cost rounds to 0. Such a product gets the revenue entry
    alone.
    """
    entries: list[NewLedgerEntry] = []
    for product_id in sorted(company.products):
        agg = company.products[product_id]
        if agg.revenue > 0:
            entries.append(
                NewLedgerEntry(
                    from_account_id=SYSTEM_ACCOUNT_ID,
                    to_account_id=company.account_id,
                    amount=agg.revenue,
                    entry_type=LedgerEntryType.MARKETPLACE_BATCH.value,
                    description=f"Marketplace sales: {agg.count} units",
                    product_id=product_id,
                    batch_count=agg.count,
                    tick_id=tick_id,
                )
            )
        if agg.cost > 0:
            entries.append(
                NewLedgerEntry(
                    from_account_id=company.account_id,
                    to_account_id=SYSTEM_ACCOUNT_ID,
                    amount=agg.cost,
                    entry_type=LedgerEntryType.MARKETPLACE_BATCH.value,
                    description=f"Marketplace production cost: {agg.count} units",
                    product_id=product_id,
                    batch_count=agg.count,
                    tick_id=tick_id,
                )
            )
    return entries


def build_counter_deltas(company: CompanyAggregate) -> list[ProductCounterDelta]:
    return [
        ProductCounterDelta(
            product_id=product_id,
            sales=agg.count,
            revenue=agg.revenue,
            costs=agg.cost,
        )
        for product_id, agg in sorted(company.products.items())
    ]


class SettlementCommitter:
    def __init__(
        self,
        settlement_repo: SettlementRepositoryProtocol,
        ledger_repo: LedgerRepositoryProtocol,
        company_repo: CompanyRepositoryProtocol,
    ) -> None:
        self._settlement = settlement_repo
        self._ledger = ledger_repo
        self._companies = company_repo

    async def commit_plan(
        self, db: AsyncSession, tick_id: str, plan: SettlementPlan
    ) -> list[str]:
        """Apply every company unit, finalize, then run the listing pass.

        Returns the ids of companies that went public because of this tick.
        """
        applied = 0
        for company_id in sorted(plan.companies):
            if await self.commit_company(db, tick_id, plan.companies[company_id]):
                applied += 1
        skipped = len(plan.companies) - applied
        if skipped:
            logger.info("Tick %s: %d companies already applied, skipped", tick_id, skipped)

        await self.finalize(db, tick_id)
        return await self.list_eligible_companies(db, tick_id, list(plan.companies))

    async def commit_company(
        self, db: AsyncSession, tick_id: str, company: CompanyAggregate
    ) -> bool:
        """One company's commit unit. False if an earlier run already applied it."""
        try:
            claimed = await self._settlement.claim_company_commit(
                db, tick_id, company.company_id, company.net
            )
            if not claimed:
                await db.rollback()
                return False
            await self._ledger.apply_delta(db, company.account_id, company.net)
            await self._ledger.record_transfers(db, build_ledger_entries(tick_id, company))
            await self._companies.increment_product_counters(db, build_counter_deltas(company))
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception(
                "Tick %s: commit failed for company %s", tick_id, company.company_id
            )
            raise
        return True

    async def finalize(self, db: AsyncSession, tick_id: str) -> bool:
        """Patch the system account once and mark the tick COMMITTED."""
        try:
            finalized = await self._settlement.mark_committed(db, tick_id)
            if finalized:
                total_net = await self._settlement.committed_net_total(db, tick_id)
                await self._ledger.apply_delta(db, SYSTEM_ACCOUNT_ID, -total_net)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        if finalized:
            logger.info("Tick %s committed", tick_id)
        return finalized

    async def list_eligible_companies(
        self, db: AsyncSession, tick_id: str, company_ids: list[str]
    ) -> list[str]:
        """Public-listing pass over the companies this tick touched."""
        try:
            companies = await self._companies.get_companies_by_ids(db, company_ids)
            balances = await self._ledger.get_balances(
                db, [c.account_id for c in companies.values()]
            )
            eligible = select_for_listing(companies.values(), balances)
            listed = await self._companies.mark_public(db, eligible)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        for company_id in listed:
            logger.info("Tick %s: company %s went public", tick_id, company_id)
        return listed
