"""Pydantic schemas for qb_company API."""

from pydantic import BaseModel, Field, field_validator

from src.qb_common.cents import cents_to_display
from src.qb_common.datetime_utils import isoformat_or_empty
from src.qb_company.domain.models import Company, Product

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateCompanyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    ticker: str = Field(..., min_length=1, max_length=10, pattern=r"^[A-Za-z0-9]+$")

    @field_validator("ticker")
    @classmethod
    def upper_ticker(cls, v: str) -> str:
        return v.upper()


class CreateProductRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    price_cents: int = Field(..., gt=0, description="Unit price in cents")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CompanyResponse(BaseModel):
    id: str
    name: str
    ticker: str
    owner_id: str
    account_id: str
    is_public: bool
    share_price: str            # Decimal dollars as string, never float
    total_shares: int
    balance_cents: int
    balance_display: str
    went_public_at: str
    created_at: str

    @classmethod
    def from_domain(cls, company: Company, balance: int) -> "CompanyResponse":
        return cls(
            id=company.id,
            name=company.name,
            ticker=company.ticker,
            owner_id=company.owner_id,
            account_id=company.account_id,
            is_public=company.is_public,
            share_price=str(company.share_price),
            total_shares=company.total_shares,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            went_public_at=isoformat_or_empty(company.went_public_at),
            created_at=isoformat_or_empty(company.created_at),
        )


class ProductResponse(BaseModel):
    id: str
    company_id: str
    name: str
    description: str | None
    price_cents: int
    price_display: str
    is_active: bool
    total_sales: int
    total_revenue_cents: int
    total_costs_cents: int
    created_at: str

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            id=product.id,
            company_id=product.company_id,
            name=product.name,
            description=product.description,
            price_cents=product.price,
            price_display=cents_to_display(product.price),
            is_active=product.is_active,
            total_sales=product.total_sales,
            total_revenue_cents=product.total_revenue,
            total_costs_cents=product.total_costs,
            created_at=isoformat_or_empty(product.created_at),
        )
