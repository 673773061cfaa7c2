"""UpgradeApplicationService — upgrade shop and the effect applier.

purchase_upgrade moves the price from the buyer's personal account to the
system account and records an unused user upgrade.

use_upgrade applies the effect and claims the user upgrade in ONE transaction:
either the mutation and the is_used flip both commit, or neither does.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import LedgerEntryType, UpgradeType
from src.qb_common.errors import (
    CompanyNotFoundError,
    CompanyNotPublicError,
    InvalidUpgradeTypeError,
    NotCompanyOwnerError,
    PersonalAccountNotFoundError,
    UpgradeAlreadyUsedError,
    UpgradeNotAvailableError,
    UpgradeNotFoundError,
    UpgradeNotOwnedError,
    UserUpgradeNotFoundError,
)
from src.qb_company.domain.models import Company, PriceHistoryEntry
from src.qb_company.domain.repository import CompanyRepositoryProtocol
from src.qb_company.infrastructure.persistence import CompanyRepository
from src.qb_ledger.application.posting import post_transfer
from src.qb_ledger.domain.constants import SYSTEM_ACCOUNT_ID
from src.qb_ledger.domain.repository import LedgerRepositoryProtocol
from src.qb_ledger.infrastructure.persistence import LedgerRepository
from src.qb_upgrade.application.schemas import (
    UpgradeResponse,
    UseUpgradeResponse,
    UserUpgradeResponse,
)
from src.qb_upgrade.domain import effects
from src.qb_upgrade.domain.models import Upgrade, UpgradeUseResult, UserUpgrade
from src.qb_upgrade.domain.repository import UpgradeRepositoryProtocol
from src.qb_upgrade.infrastructure.persistence import UpgradeRepository

logger = logging.getLogger(__name__)


class UpgradeApplicationService:
    def __init__(
        self,
        repo: UpgradeRepositoryProtocol | None = None,
        company_repo: CompanyRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: UpgradeRepositoryProtocol = repo or UpgradeRepository()
        self._companies: CompanyRepositoryProtocol = company_repo or CompanyRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    # ------------------------------------------------------------------
    # Catalog and shop
    # ------------------------------------------------------------------

    async def list_active_upgrades(self, db: AsyncSession) -> list[UpgradeResponse]:
        upgrades = await self._repo.list_active_upgrades(db)
        return [UpgradeResponse.from_domain(u) for u in upgrades]

    async def list_user_upgrades(
        self, db: AsyncSession, user_id: str
    ) -> list[UserUpgradeResponse]:
        user_upgrades = await self._repo.list_user_upgrades(db, user_id)
        return [UserUpgradeResponse.from_domain(u) for u in user_upgrades]

    async def purchase_upgrade(
        self, db: AsyncSession, user_id: str, upgrade_id: str
    ) -> UserUpgradeResponse:
        upgrade = await self._repo.get_upgrade(db, upgrade_id)
        if upgrade is None:
            raise UpgradeNotFoundError(upgrade_id)
        if not upgrade.is_active:
            raise UpgradeNotAvailableError(upgrade_id)

        personal = await self._ledger.get_personal_account(db, user_id)
        if personal is None:
            raise PersonalAccountNotFoundError(user_id)

        try:
            await post_transfer(
                self._ledger,
                db,
                from_account_id=personal.id,
                to_account_id=SYSTEM_ACCOUNT_ID,
                amount=upgrade.price,
                entry_type=LedgerEntryType.TRANSFER.value,
                description=f"Upgrade purchase: {upgrade.name}",
            )
            user_upgrade = await self._repo.create_user_upgrade(
                db, user_id, upgrade.id, upgrade.price
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("User %s bought upgrade %s for %d", user_id, upgrade.id, upgrade.price)
        return UserUpgradeResponse.from_domain(user_upgrade)

    # ------------------------------------------------------------------
    # Effect applier
    # ------------------------------------------------------------------

    async def use_upgrade(
        self, db: AsyncSession, user_id: str, user_upgrade_id: str, company_id: str
    ) -> UseUpgradeResponse:
        """Apply whichever effect the user upgrade carries."""
        user_upgrade, upgrade = await self._load_usable(db, user_id, user_upgrade_id)
        result = await self._apply(db, user_id, user_upgrade, upgrade, company_id)
        return UseUpgradeResponse.from_domain(result)

    async def apply_revenue_boost(
        self, db: AsyncSession, user_id: str, user_upgrade_id: str, company_id: str
    ) -> UseUpgradeResponse:
        return await self._use_expecting(
            db, user_id, user_upgrade_id, company_id, UpgradeType.REVENUE_BOOST
        )

    async def apply_stock_price_boost(
        self, db: AsyncSession, user_id: str, user_upgrade_id: str, company_id: str
    ) -> UseUpgradeResponse:
        return await self._use_expecting(
            db, user_id, user_upgrade_id, company_id, UpgradeType.STOCK_PRICE_BOOST
        )

    async def apply_stock_price_lower(
        self, db: AsyncSession, user_id: str, user_upgrade_id: str, company_id: str
    ) -> UseUpgradeResponse:
        return await self._use_expecting(
            db, user_id, user_upgrade_id, company_id, UpgradeType.STOCK_PRICE_LOWER
        )

    async def _use_expecting(
        self,
        db: AsyncSession,
        user_id: str,
        user_upgrade_id: str,
        company_id: str,
        expected: UpgradeType,
    ) -> UseUpgradeResponse:
        user_upgrade, upgrade = await self._load_usable(db, user_id, user_upgrade_id)
        if upgrade.upgrade_type != expected.value:
            raise InvalidUpgradeTypeError(expected.value, upgrade.upgrade_type)
        result = await self._apply(db, user_id, user_upgrade, upgrade, company_id)
        return UseUpgradeResponse.from_domain(result)

    async def _load_usable(
        self, db: AsyncSession, user_id: str, user_upgrade_id: str
    ) -> tuple[UserUpgrade, Upgrade]:
        user_upgrade = await self._repo.get_user_upgrade(db, user_upgrade_id)
        if user_upgrade is None:
            raise UserUpgradeNotFoundError(user_upgrade_id)
        if user_upgrade.user_id != user_id:
            raise UpgradeNotOwnedError(user_upgrade_id)
        if user_upgrade.is_used:
            raise UpgradeAlreadyUsedError(user_upgrade_id)
        upgrade = await self._repo.get_upgrade(db, user_upgrade.upgrade_id)
        if upgrade is None:
            raise UpgradeNotFoundError(user_upgrade.upgrade_id)
        return user_upgrade, upgrade

    async def _apply(
        self,
        db: AsyncSession,
        user_id: str,
        user_upgrade: UserUpgrade,
        upgrade: Upgrade,
        company_id: str,
    ) -> UpgradeUseResult:
        try:
            company = await self._companies.get_company(db, company_id, for_update=True)
            if company is None:
                raise CompanyNotFoundError(company_id)

            upgrade_type = UpgradeType(upgrade.upgrade_type)
            if upgrade_type == UpgradeType.REVENUE_BOOST:
                result = await self._boost_revenue(db, user_id, company, upgrade)
            else:
                result = await self._move_share_price(
                    db,
                    company,
                    upgrade,
                    raise_price=upgrade_type == UpgradeType.STOCK_PRICE_BOOST,
                )

            claimed = await self._repo.claim_user_upgrade(
                db, user_upgrade.id, company.id, result.effect_applied
            )
            if not claimed:
                raise UpgradeAlreadyUsedError(user_upgrade.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "User %s used %s on company %s: effect=%s",
            user_id,
            upgrade.upgrade_type,
            company_id,
            result.effect_applied,
        )
        return result

    async def _boost_revenue(
        self, db: AsyncSession, user_id: str, company: Company, upgrade: Upgrade
    ) -> UpgradeUseResult:
        if company.owner_id != user_id:
            raise NotCompanyOwnerError(company.id)
        products = await self._companies.list_company_products(
            db, company.id, active_only=True, for_update=True
        )
        new_totals, total_boost = effects.revenue_boosts(products, upgrade.effect_percentage)
        await self._companies.set_product_revenues(db, new_totals)
        return UpgradeUseResult(
            success=True,
            message=(
                f"Revenue boosted by {upgrade.effect_percentage}% "
                f"across {len(new_totals)} products"
            ),
            effect_applied=Decimal(total_boost),
        )

    async def _move_share_price(
        self, db: AsyncSession, company: Company, upgrade: Upgrade, raise_price: bool
    ) -> UpgradeUseResult:
        if not company.is_public:
            raise CompanyNotPublicError(company.id)
        old_price = company.share_price
        new_price, effect = effects.adjust_share_price(
            old_price, upgrade.effect_percentage, raise_price
        )
        await self._companies.insert_price_history(
            db,
            PriceHistoryEntry(
                company_id=company.id,
                price=new_price,
                market_cap=effects.market_cap(new_price, company.total_shares),
                volume=0,
            ),
        )
        await self._companies.update_share_price(db, company.id, new_price)
        direction = "raised" if raise_price else "lowered"
        return UpgradeUseResult(
            success=True,
            message=f"{company.ticker} share price {direction} by {upgrade.effect_percentage}%",
            effect_applied=effect,
            old_price=old_price,
            new_price=new_price,
        )
