"""004: create companies and stock_price_history tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE companies (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(200)    NOT NULL,
            ticker          VARCHAR(10)     NOT NULL,
            owner_id        VARCHAR(64)     NOT NULL,
            account_id      VARCHAR(64)     NOT NULL REFERENCES accounts (id),
            is_public       BOOLEAN         NOT NULL DEFAULT FALSE,
            share_price     NUMERIC(20, 4)  NOT NULL DEFAULT 0.01,
            total_shares    BIGINT          NOT NULL DEFAULT 1000000,
            went_public_at  TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_companies_ticker      UNIQUE (ticker),
            CONSTRAINT uq_companies_account     UNIQUE (account_id),
            CONSTRAINT ck_companies_ticker_upper CHECK (ticker = UPPER(ticker)),
            CONSTRAINT ck_companies_share_price CHECK (share_price >= 0.01),
            CONSTRAINT ck_companies_public_at   CHECK (is_public = (went_public_at IS NOT NULL))
        );
    """)
    op.execute("CREATE INDEX idx_companies_owner ON companies (owner_id);")

    op.execute("""
        CREATE TABLE stock_price_history (
            id              BIGSERIAL       PRIMARY KEY,
            company_id      VARCHAR(64)     NOT NULL REFERENCES companies (id),
            price           NUMERIC(20, 4)  NOT NULL,
            market_cap      NUMERIC(28, 4)  NOT NULL,
            volume          INTEGER         NOT NULL DEFAULT 0,
            recorded_at     TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("""
        CREATE INDEX idx_price_history_company_time
        ON stock_price_history (company_id, recorded_at DESC);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS stock_price_history CASCADE;")
    op.execute("DROP TABLE IF EXISTS companies CASCADE;")
