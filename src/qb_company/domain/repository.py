"""Repository Protocol for companies, products and share price history."""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_company.domain.models import (
    Company,
    PriceHistoryEntry,
    Product,
    ProductCounterDelta,
)


class CompanyRepositoryProtocol(Protocol):
    # --- companies ---

    async def create_company(
        self,
        db: AsyncSession,
        company_id: str,
        name: str,
        ticker: str,
        owner_id: str,
        account_id: str,
    ) -> Company: ...

    async def get_company(
        self, db: AsyncSession, company_id: str, for_update: bool = False
    ) -> Company | None: ...

    async def get_companies_by_ids(
        self, db: AsyncSession, company_ids: list[str]
    ) -> dict[str, Company]: ...

    async def ticker_exists(self, db: AsyncSession, ticker: str) -> bool: ...

    async def mark_public(self, db: AsyncSession, company_ids: list[str]) -> list[str]: ...

    async def update_share_price(
        self, db: AsyncSession, company_id: str, share_price: Decimal
    ) -> None: ...

    async def insert_price_history(
        self, db: AsyncSession, entry: PriceHistoryEntry
    ) -> int: ...

    # --- products ---

    async def create_product(
        self,
        db: AsyncSession,
        company_id: str,
        name: str,
        description: str | None,
        price: int,
    ) -> Product: ...

    async def list_active_products(self, db: AsyncSession) -> list[Product]: ...

    async def list_company_products(
        self,
        db: AsyncSession,
        company_id: str,
        active_only: bool = False,
        for_update: bool = False,
    ) -> list[Product]: ...

    async def increment_product_counters(
        self, db: AsyncSession, deltas: list[ProductCounterDelta]
    ) -> None: ...

    async def set_product_revenues(
        self, db: AsyncSession, revenues: dict[str, int]
    ) -> None: ...

    async def deactivate_product(
        self, db: AsyncSession, company_id: str, product_id: str
    ) -> Product | None: ...
