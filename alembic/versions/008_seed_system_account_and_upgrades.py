"""008: seed the system account and the default upgrade catalog

Revision ID: 008
Revises: 007
Create Date: 2026-10-05
"""

from typing import Sequence, Union

from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Counter-party of every money entry point; goes negative as money is issued
    op.execute("""
        INSERT INTO accounts (id, owner_id, account_type, name, balance)
        VALUES ('SYSTEM', 'SYSTEM', 'PERSONAL', 'System', 0);
    """)
    op.execute("""
        INSERT INTO balances (account_id, balance) VALUES ('SYSTEM', 0);
    """)

    op.execute("""
        INSERT INTO upgrades (id, name, description, upgrade_type, tier, effect_percentage, price)
        VALUES
            ('UPG-REVENUE-LOW', 'Revenue Boost I',
             'Raise the recorded revenue of every active product by 10%.',
             'REVENUE_BOOST', 'LOW', 10, 50000000),
            ('UPG-REVENUE-MEDIUM', 'Revenue Boost II',
             'Raise the recorded revenue of every active product by 20%.',
             'REVENUE_BOOST', 'MEDIUM', 20, 150000000),
            ('UPG-REVENUE-HIGH', 'Revenue Boost III',
             'Raise the recorded revenue of every active product by 30%.',
             'REVENUE_BOOST', 'HIGH', 30, 300000000),
            ('UPG-STOCK-BOOST-LOW', 'Stock Price Boost I',
             'Raise a public company''s share price by 5%.',
             'STOCK_PRICE_BOOST', 'LOW', 5, 75000000),
            ('UPG-STOCK-BOOST-MEDIUM', 'Stock Price Boost II',
             'Raise a public company''s share price by 10%.',
             'STOCK_PRICE_BOOST', 'MEDIUM', 10, 200000000),
            ('UPG-STOCK-LOWER-LOW', 'Stock Price Lower I',
             'Lower a public company''s share price by 5%.',
             'STOCK_PRICE_LOWER', 'LOW', 5, 100000000),
            ('UPG-STOCK-LOWER-MEDIUM', 'Stock Price Lower II',
             'Lower a public company''s share price by 10%.',
             'STOCK_PRICE_LOWER', 'MEDIUM', 10, 250000000);
    """)


def downgrade() -> None:
    op.execute("DELETE FROM upgrades WHERE id LIKE 'UPG-%';")
    op.execute("DELETE FROM balances WHERE account_id = 'SYSTEM';")
    op.execute("DELETE FROM accounts WHERE id = 'SYSTEM';")
