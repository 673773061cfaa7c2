"""007: create settlement_ticks and settlement_commits tables

Revision ID: 007
Revises: 006
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE settlement_ticks (
            id              VARCHAR(64)     PRIMARY KEY,
            status          VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            budget          BIGINT          NOT NULL,
            payload         JSONB           NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            committed_at    TIMESTAMPTZ,
            CONSTRAINT ck_settlement_ticks_status CHECK (status IN ('PENDING', 'COMMITTED'))
        );
    """)
    op.execute("""
        CREATE INDEX idx_settlement_ticks_pending
        ON settlement_ticks (id)
        WHERE status = 'PENDING';
    """)

    op.execute("""
        CREATE TABLE settlement_commits (
            id              BIGSERIAL       PRIMARY KEY,
            tick_id         VARCHAR(64)     NOT NULL REFERENCES settlement_ticks (id),
            company_id      VARCHAR(64)     NOT NULL,
            net             BIGINT          NOT NULL,
            committed_at    TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_settlement_commits_tick_company UNIQUE (tick_id, company_id)
        );
    """)
    op.execute("COMMENT ON TABLE settlement_commits IS 'One row per (tick, company) applied; replays skip claimed rows';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS settlement_commits CASCADE;")
    op.execute("DROP TABLE IF EXISTS settlement_ticks CASCADE;")
