"""CompanyRepository — raw SQL for companies, products and price history.

Transaction ownership: the CALLER commits or rolls back.
"""

from decimal import Decimal

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.errors import InternalError
from src.qb_common.id_generator import generate_id
from src.qb_company.domain.models import (
    Company,
    PriceHistoryEntry,
    Product,
    ProductCounterDelta,
)

_COMPANY_COLUMNS = (
    "id, name, ticker, owner_id, account_id, is_public, share_price,"
    " total_shares, went_public_at, created_at"
)

_PRODUCT_COLUMNS = (
    "id, company_id, name, description, price, is_active,"
    " total_sales, total_revenue, total_costs, created_at"
)

_CREATE_COMPANY_SQL = text(f"""
    INSERT INTO companies (id, name, ticker, owner_id, account_id)
    VALUES (:id, :name, :ticker, :owner_id, :account_id)
    RETURNING {_COMPANY_COLUMNS}
""")

_GET_COMPANY_SQL = text(f"""
    SELECT {_COMPANY_COLUMNS}
    FROM companies
    WHERE id = :company_id
""")

_GET_COMPANY_FOR_UPDATE_SQL = text(f"""
    SELECT {_COMPANY_COLUMNS}
    FROM companies
    WHERE id = :company_id
    FOR UPDATE
""")

_GET_COMPANIES_BY_IDS_SQL = text(f"""
    SELECT {_COMPANY_COLUMNS}
    FROM companies
    WHERE id IN :company_ids
""").bindparams(bindparam("company_ids", expanding=True))

_TICKER_EXISTS_SQL = text("""
    SELECT 1 FROM companies WHERE ticker = :ticker
""")

# Guarded transition: a company already public is never touched again
_MARK_PUBLIC_SQL = text("""
    UPDATE companies
    SET is_public = TRUE,
        went_public_at = NOW()
    WHERE id IN :company_ids
      AND is_public = FALSE
    RETURNING id
""").bindparams(bindparam("company_ids", expanding=True))

_UPDATE_SHARE_PRICE_SQL = text("""
    UPDATE companies
    SET share_price = :share_price
    WHERE id = :company_id
""")

_INSERT_PRICE_HISTORY_SQL = text("""
    INSERT INTO stock_price_history (company_id, price, market_cap, volume)
    VALUES (:company_id, :price, :market_cap, :volume)
    RETURNING id
""")

_CREATE_PRODUCT_SQL = text(f"""
    INSERT INTO products (id, company_id, name, description, price)
    VALUES (:id, :company_id, :name, :description, :price)
    RETURNING {_PRODUCT_COLUMNS}
""")

_LIST_ACTIVE_PRODUCTS_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM products
    WHERE is_active = TRUE
    ORDER BY id
""")

_LIST_COMPANY_PRODUCTS_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM products
    WHERE company_id = :company_id
      AND (CAST(:active_only AS BOOLEAN) = FALSE OR is_active = TRUE)
    ORDER BY created_at ASC, id ASC
""")

_LIST_COMPANY_PRODUCTS_FOR_UPDATE_SQL = text(f"""
    SELECT {_PRODUCT_COLUMNS}
    FROM products
    WHERE company_id = :company_id
      AND (CAST(:active_only AS BOOLEAN) = FALSE OR is_active = TRUE)
    ORDER BY id
    FOR UPDATE
""")

_INCREMENT_COUNTERS_SQL = text("""
    UPDATE products
    SET total_sales = total_sales + :sales,
        total_revenue = total_revenue + :revenue,
        total_costs = total_costs + :costs
    WHERE id = :product_id
""")

_SET_REVENUE_SQL = text("""
    UPDATE products
    SET total_revenue = :total_revenue
    WHERE id = :product_id
""")

_DEACTIVATE_PRODUCT_SQL = text(f"""
    UPDATE products
    SET is_active = FALSE
    WHERE id = :product_id AND company_id = :company_id
    RETURNING {_PRODUCT_COLUMNS}
""")


def _row_to_company(row: object) -> Company:
    return Company(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        ticker=row.ticker,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        account_id=row.account_id,  # type: ignore[attr-defined]
        is_public=row.is_public,  # type: ignore[attr-defined]
        share_price=Decimal(row.share_price),  # type: ignore[attr-defined]
        total_shares=row.total_shares,  # type: ignore[attr-defined]
        went_public_at=row.went_public_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_product(row: object) -> Product:
    return Product(
        id=row.id,  # type: ignore[attr-defined]
        company_id=row.company_id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        price=row.price,  # type: ignore[attr-defined]
        is_active=row.is_active,  # type: ignore[attr-defined]
        total_sales=row.total_sales,  # type: ignore[attr-defined]
        total_revenue=row.total_revenue,  # type: ignore[attr-defined]
        total_costs=row.total_costs,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class CompanyRepository:
    # --- companies ---

    async def create_company(
        self,
        db: AsyncSession,
        company_id: str,
        name: str,
        ticker: str,
        owner_id: str,
        account_id: str,
    ) -> Company:
        result = await db.execute(
            _CREATE_COMPANY_SQL,
            {
                "id": company_id,
                "name": name,
                "ticker": ticker,
                "owner_id": owner_id,
                "account_id": account_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Company insert returned no rows")
        return _row_to_company(row)

    async def get_company(
        self, db: AsyncSession, company_id: str, for_update: bool = False
    ) -> Company | None:
        sql = _GET_COMPANY_FOR_UPDATE_SQL if for_update else _GET_COMPANY_SQL
        result = await db.execute(sql, {"company_id": company_id})
        row = result.fetchone()
        return _row_to_company(row) if row else None

    async def get_companies_by_ids(
        self, db: AsyncSession, company_ids: list[str]
    ) -> dict[str, Company]:
        if not company_ids:
            return {}
        result = await db.execute(_GET_COMPANIES_BY_IDS_SQL, {"company_ids": company_ids})
        companies = [_row_to_company(row) for row in result.fetchall()]
        return {c.id: c for c in companies}

    async def ticker_exists(self, db: AsyncSession, ticker: str) -> bool:
        result = await db.execute(_TICKER_EXISTS_SQL, {"ticker": ticker})
        return result.fetchone() is not None

    async def mark_public(self, db: AsyncSession, company_ids: list[str]) -> list[str]:
        """Flip private companies to public; returns the ids actually flipped."""
        if not company_ids:
            return []
        result = await db.execute(_MARK_PUBLIC_SQL, {"company_ids": company_ids})
        return [row.id for row in result.fetchall()]

    async def update_share_price(
        self, db: AsyncSession, company_id: str, share_price: Decimal
    ) -> None:
        await db.execute(
            _UPDATE_SHARE_PRICE_SQL,
            {"company_id": company_id, "share_price": share_price},
        )

    async def insert_price_history(self, db: AsyncSession, entry: PriceHistoryEntry) -> int:
        result = await db.execute(
            _INSERT_PRICE_HISTORY_SQL,
            {
                "company_id": entry.company_id,
                "price": entry.price,
                "market_cap": entry.market_cap,
                "volume": entry.volume,
            },
        )
        return int(result.scalar_one())

    # --- products ---

    async def create_product(
        self,
        db: AsyncSession,
        company_id: str,
        name: str,
        description: str | None,
        price: int,
    ) -> Product:
        result = await db.execute(
            _CREATE_PRODUCT_SQL,
            {
                "id": generate_id(),
                "company_id": company_id,
                "name": name,
                "description": description,
                "price": price,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Product insert returned no rows")
        return _row_to_product(row)

    async def list_active_products(self, db: AsyncSession) -> list[Product]:
        result = await db.execute(_LIST_ACTIVE_PRODUCTS_SQL)
        return [_row_to_product(row) for row in result.fetchall()]

    async def list_company_products(
        self,
        db: AsyncSession,
        company_id: str,
        active_only: bool = False,
        for_update: bool = False,
    ) -> list[Product]:
        sql = _LIST_COMPANY_PRODUCTS_FOR_UPDATE_SQL if for_update else _LIST_COMPANY_PRODUCTS_SQL
        result = await db.execute(sql, {"company_id": company_id, "active_only": active_only})
        return [_row_to_product(row) for row in result.fetchall()]

    async def increment_product_counters(
        self, db: AsyncSession, deltas: list[ProductCounterDelta]
    ) -> None:
        """Batched counter patch, one statement execution for all products."""
        if not deltas:
            return
        await db.execute(
            _INCREMENT_COUNTERS_SQL,
            [
                {
                    "product_id": d.product_id,
                    "sales": d.sales,
                    "revenue": d.revenue,
                    "costs": d.costs,
                }
                for d in deltas
            ],
        )

    async def set_product_revenues(self, db: AsyncSession, revenues: dict[str, int]) -> None:
        if not revenues:
            return
        await db.execute(
            _SET_REVENUE_SQL,
            [{"product_id": pid, "total_revenue": rev} for pid, rev in revenues.items()],
        )

    async def deactivate_product(
        self, db: AsyncSession, company_id: str, product_id: str
    ) -> Product | None:
        """Soft delete: the product drops out of the settlement catalog, its counters stay."""
        result = await db.execute(
            _DEACTIVATE_PRODUCT_SQL, {"product_id": product_id, "company_id": company_id}
        )
        row = result.fetchone()
        return _row_to_product(row) if row else None
