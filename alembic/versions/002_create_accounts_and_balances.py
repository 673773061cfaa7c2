"""002: create accounts and balances tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE accounts (
            id              VARCHAR(64)     PRIMARY KEY,
            owner_id        VARCHAR(64)     NOT NULL,
            account_type    VARCHAR(20)     NOT NULL,
            name            VARCHAR(200)    NOT NULL,
            company_id      VARCHAR(64),
            balance         BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_accounts_type CHECK (account_type IN ('PERSONAL', 'COMPANY')),
            CONSTRAINT ck_accounts_company_link CHECK (
                (account_type = 'COMPANY') = (company_id IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_accounts_owner ON accounts (owner_id, created_at);")
    # One personal account per owner; concurrent opens lose on this index
    op.execute("""
        CREATE UNIQUE INDEX uq_accounts_personal_owner
        ON accounts (owner_id)
        WHERE account_type = 'PERSONAL';
    """)
    op.execute("""
        CREATE TRIGGER trg_accounts_updated_at
            BEFORE UPDATE ON accounts
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE accounts IS 'Account registry. balance is a cached copy of balances.balance, in cents';")

    op.execute("""
        CREATE TABLE balances (
            account_id      VARCHAR(64)     PRIMARY KEY REFERENCES accounts (id),
            balance         BIGINT          NOT NULL DEFAULT 0,
            last_updated    TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("COMMENT ON TABLE balances IS 'Balance cache. Written together with accounts.balance by one statement';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS balances CASCADE;")
    op.execute("DROP TABLE IF EXISTS accounts CASCADE;")
