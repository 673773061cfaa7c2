"""003: create ledger_entries table

Revision ID: 003
Revises: 002
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE ledger_entries (
            id                  BIGSERIAL       PRIMARY KEY,
            from_account_id     VARCHAR(64)     NOT NULL REFERENCES accounts (id),
            to_account_id       VARCHAR(64)     NOT NULL REFERENCES accounts (id),
            amount              BIGINT          NOT NULL,
            entry_type          VARCHAR(30)     NOT NULL,
            description         VARCHAR(500),
            product_id          VARCHAR(64),
            batch_count         INTEGER,
            tick_id             VARCHAR(64),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ledger_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_ledger_batch_count_gt_0 CHECK (batch_count IS NULL OR batch_count > 0),
            CONSTRAINT ck_ledger_entry_type CHECK (
                entry_type IN (
                    'TRANSFER', 'PRODUCT_PURCHASE', 'PRODUCT_COST',
                    'INITIAL_DEPOSIT', 'STOCK_PURCHASE', 'STOCK_SALE',
                    'MARKETPLACE_BATCH', 'EXPENSE'
                )
            )
        );
    """)
    op.execute("CREATE INDEX idx_ledger_from ON ledger_entries (from_account_id, id DESC);")
    op.execute("CREATE INDEX idx_ledger_to ON ledger_entries (to_account_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_ledger_tick
        ON ledger_entries (tick_id)
        WHERE tick_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_ledger_append_only
            BEFORE UPDATE OR DELETE ON ledger_entries
            FOR EACH ROW EXECUTE FUNCTION fn_reject_ledger_mutation();
    """)
    op.execute("COMMENT ON TABLE ledger_entries IS 'Append-only money movements, amounts in cents, direction from -> to';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ledger_entries CASCADE;")
