"""Well-known accounts and amounts of the ledger."""

# Counter-party of every money entry point (deposits, marketplace, upgrade shop).
# Seeded by migration 008; its balance goes negative as money is issued.
SYSTEM_ACCOUNT_ID = "SYSTEM"
SYSTEM_OWNER_ID = "SYSTEM"

PERSONAL_ACCOUNT_NAME = "Personal Account"
PERSONAL_INITIAL_DEPOSIT = 1_000_000  # $10,000
