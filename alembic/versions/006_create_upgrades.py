"""006: create upgrades and user_upgrades tables

Revision ID: 006
Revises: 005
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE upgrades (
            id                  VARCHAR(64)     PRIMARY KEY,
            name                VARCHAR(200)    NOT NULL,
            description         VARCHAR(1000),
            upgrade_type        VARCHAR(30)     NOT NULL,
            tier                VARCHAR(10)     NOT NULL,
            effect_percentage   INTEGER         NOT NULL,
            price               BIGINT          NOT NULL,
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_upgrades_type CHECK (
                upgrade_type IN ('REVENUE_BOOST', 'STOCK_PRICE_BOOST', 'STOCK_PRICE_LOWER')
            ),
            CONSTRAINT ck_upgrades_tier CHECK (tier IN ('LOW', 'MEDIUM', 'HIGH')),
            CONSTRAINT ck_upgrades_effect CHECK (effect_percentage BETWEEN 1 AND 100),
            CONSTRAINT ck_upgrades_price_gt_0 CHECK (price > 0)
        );
    """)

    op.execute("""
        CREATE TABLE user_upgrades (
            id                  VARCHAR(64)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL,
            upgrade_id          VARCHAR(64)     NOT NULL REFERENCES upgrades (id),
            purchase_price      BIGINT          NOT NULL,
            is_used             BOOLEAN         NOT NULL DEFAULT FALSE,
            used_at             TIMESTAMPTZ,
            target_company_id   VARCHAR(64)     REFERENCES companies (id),
            effect_applied      NUMERIC(28, 4),
            purchased_at        TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_user_upgrades_used CHECK (is_used = (used_at IS NOT NULL))
        );
    """)
    op.execute("CREATE INDEX idx_user_upgrades_user ON user_upgrades (user_id, purchased_at DESC);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_upgrades CASCADE;")
    op.execute("DROP TABLE IF EXISTS upgrades CASCADE;")
