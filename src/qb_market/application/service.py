"""SettlementService — one marketplace tick end to end.

run_tick:
  1. refuse while an earlier tick is still PENDING;
  2. load active products and resolve companies and accounts (one batched
     query each); products whose owner cannot be resolved are skipped;
  3. simulate in memory;
  4. journal the plan under a new tick id (its own transaction);
  5. hand the plan to the committer.

resume_pending_ticks replays journaled plans; already-applied companies are
skipped by the committer, so it is safe to call repeatedly.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.errors import TickPendingError
from src.qb_common.id_generator import generate_id
from src.qb_company.domain.repository import CompanyRepositoryProtocol
from src.qb_company.infrastructure.persistence import CompanyRepository
from src.qb_ledger.domain.repository import LedgerRepositoryProtocol
from src.qb_ledger.infrastructure.persistence import LedgerRepository
from src.qb_market.domain.models import CatalogProduct, TickResult
from src.qb_market.domain.repository import SettlementRepositoryProtocol
from src.qb_market.engine.committer import SettlementCommitter
from src.qb_market.engine.simulator import DemandSimulator
from src.qb_market.infrastructure.persistence import SettlementRepository

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(
        self,
        simulator: DemandSimulator | None = None,
        settlement_repo: SettlementRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        company_repo: CompanyRepositoryProtocol | None = None,
    ) -> None:
        self._simulator = simulator or DemandSimulator()
        self._settlement: SettlementRepositoryProtocol = settlement_repo or SettlementRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._companies: CompanyRepositoryProtocol = company_repo or CompanyRepository()
        self._committer = SettlementCommitter(self._settlement, self._ledger, self._companies)

    async def load_catalog(self, db: AsyncSession) -> list[CatalogProduct]:
        products = await self._companies.list_active_products(db)
        if not products:
            return []

        company_ids = sorted({p.company_id for p in products})
        companies = await self._companies.get_companies_by_ids(db, company_ids)
        accounts = await self._ledger.get_accounts_by_ids(
            db, sorted({c.account_id for c in companies.values()})
        )

        catalog: list[CatalogProduct] = []
        for product in products:
            company = companies.get(product.company_id)
            if company is None:
                logger.warning(
                    "Skipping product %s: company %s not found",
                    product.id,
                    product.company_id,
                )
                continue
            if company.account_id not in accounts:
                logger.warning(
                    "Skipping product %s: account %s of company %s not found",
                    product.id,
                    company.account_id,
                    company.id,
                )
                continue
            catalog.append(
                CatalogProduct(
                    product_id=product.id,
                    company_id=company.id,
                    account_id=company.account_id,
                    price=product.price,
                )
            )
        return catalog

    async def run_tick(self, db: AsyncSession) -> TickResult | None:
        """Run one settlement tick. Returns None when there is nothing to sell."""
        pending = await self._settlement.get_pending_ticks(db)
        if pending:
            raise TickPendingError(pending[0].tick_id)

        catalog = await self.load_catalog(db)
        plan = self._simulator.simulate(catalog)
        if plan is None:
            logger.info("Settlement skipped: no active products")
            return None

        tick_id = generate_id()
        logger.info(
            "Tick %s: budget=%d tier_budget=%d catalog=%d",
            tick_id,
            plan.budget,
            plan.tier_budget,
            len(catalog),
        )
        try:
            await self._settlement.create_tick(db, tick_id, plan)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        listed = await self._committer.commit_plan(db, tick_id, plan)
        logger.info(
            "Tick %s: units=%d spent=%d net=%d unspent=%d companies=%d listed=%d",
            tick_id,
            plan.units_sold,
            plan.total_spent,
            plan.net_flow,
            plan.unspent,
            len(plan.companies),
            len(listed),
        )
        return TickResult(tick_id=tick_id, plan=plan, listed_companies=listed)

    async def resume_pending_ticks(self, db: AsyncSession) -> list[TickResult]:
        pending = await self._settlement.get_pending_ticks(db)
        # Release the read transaction before per-company units begin
        await db.rollback()
        results: list[TickResult] = []
        for tick in pending:
            logger.info("Resuming pending tick %s", tick.tick_id)
            listed = await self._committer.commit_plan(db, tick.tick_id, tick.plan)
            results.append(
                TickResult(
                    tick_id=tick.tick_id,
                    plan=tick.plan,
                    listed_companies=listed,
                    resumed=True,
                )
            )
        return results
