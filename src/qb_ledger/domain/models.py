"""Domain models for qb_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Account:
    id: str
    owner_id: str
    account_type: str         # AccountType value
    name: str
    balance: int              # cents, cached copy (see BalanceRecord)
    company_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class BalanceRecord:
    """Read-scaling shadow of Account.balance; both are written together."""

    account_id: str
    balance: int              # cents
    last_updated: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    from_account_id: str
    to_account_id: str
    amount: int                      # cents, always > 0; direction is from -> to
    entry_type: str                  # LedgerEntryType value
    description: str | None = None
    product_id: str | None = None
    batch_count: int | None = None   # units represented by this entry
    tick_id: str | None = None
    created_at: datetime | None = None


@dataclass
class NewLedgerEntry:
    """Entry not yet persisted; used for batched appends."""

    from_account_id: str
    to_account_id: str
    amount: int
    entry_type: str
    description: str | None = None
    product_id: str | None = None
    batch_count: int | None = None
    tick_id: str | None = None
