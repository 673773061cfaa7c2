"""005: create products table

Revision ID: 005
Revises: 004
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE products (
            id              VARCHAR(64)     PRIMARY KEY,
            company_id      VARCHAR(64)     NOT NULL REFERENCES companies (id),
            name            VARCHAR(200)    NOT NULL,
            description     VARCHAR(1000),
            price           BIGINT          NOT NULL,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            total_sales     BIGINT          NOT NULL DEFAULT 0,
            total_revenue   BIGINT          NOT NULL DEFAULT 0,
            total_costs     BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_price_gt_0     CHECK (price > 0),
            CONSTRAINT ck_products_counters_gte_0 CHECK (
                total_sales >= 0 AND total_revenue >= 0 AND total_costs >= 0
            )
        );
    """)
    op.execute("CREATE INDEX idx_products_company ON products (company_id);")
    op.execute("""
        CREATE INDEX idx_products_active
        ON products (id)
        WHERE is_active = TRUE;
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
