"""CompanyApplicationService — company formation and product catalog."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import AccountType
from src.qb_common.errors import (
    CompanyNotFoundError,
    NotCompanyOwnerError,
    ProductNotFoundError,
    TickerTakenError,
)
from src.qb_common.id_generator import generate_id
from src.qb_company.application.schemas import CompanyResponse, ProductResponse
from src.qb_company.domain.models import Company
from src.qb_company.domain.repository import CompanyRepositoryProtocol
from src.qb_company.infrastructure.persistence import CompanyRepository
from src.qb_ledger.domain.repository import LedgerRepositoryProtocol
from src.qb_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


class CompanyApplicationService:
    def __init__(
        self,
        repo: CompanyRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: CompanyRepositoryProtocol = repo or CompanyRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def _get_owned_company(
        self, db: AsyncSession, owner_id: str, company_id: str
    ) -> Company:
        company = await self._repo.get_company(db, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        if company.owner_id != owner_id:
            raise NotCompanyOwnerError(company_id)
        return company

    async def create_company(
        self, db: AsyncSession, owner_id: str, name: str, ticker: str
    ) -> CompanyResponse:
        """Form a private company with its own zero-balance COMPANY account."""
        ticker = ticker.upper()
        if await self._repo.ticker_exists(db, ticker):
            raise TickerTakenError(ticker)

        company_id = generate_id()
        try:
            account = await self._ledger.create_account(
                db, owner_id, AccountType.COMPANY.value, name, company_id=company_id
            )
            await self._ledger.initialize_balance(db, account.id, 0)
            company = await self._repo.create_company(
                db, company_id, name, ticker, owner_id, account.id
            )
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise TickerTakenError(ticker) from None
        except Exception:
            await db.rollback()
            raise

        logger.info("Company %s (%s) formed by %s", company.id, ticker, owner_id)
        return CompanyResponse.from_domain(company, balance=0)

    async def get_company(self, db: AsyncSession, company_id: str) -> CompanyResponse:
        company = await self._repo.get_company(db, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        balance = await self._ledger.get_balance(db, company.account_id)
        return CompanyResponse.from_domain(company, balance)

    async def create_product(
        self,
        db: AsyncSession,
        owner_id: str,
        company_id: str,
        name: str,
        description: str | None,
        price_cents: int,
    ) -> ProductResponse:
        await self._get_owned_company(db, owner_id, company_id)
        try:
            product = await self._repo.create_product(
                db, company_id, name, description, price_cents
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return ProductResponse.from_domain(product)

    async def deactivate_product(
        self, db: AsyncSession, owner_id: str, company_id: str, product_id: str
    ) -> ProductResponse:
        await self._get_owned_company(db, owner_id, company_id)
        try:
            product = await self._repo.deactivate_product(db, company_id, product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Product %s of company %s deactivated", product_id, company_id)
        return ProductResponse.from_domain(product)

    async def list_products(self, db: AsyncSession, company_id: str) -> list[ProductResponse]:
        if await self._repo.get_company(db, company_id) is None:
            raise CompanyNotFoundError(company_id)
        products = await self._repo.list_company_products(db, company_id)
        return [ProductResponse.from_domain(p) for p in products]
