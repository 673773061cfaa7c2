"""Pydantic schemas and cursor utilities for qb_ledger API."""

import base64
import json

from pydantic import BaseModel, Field

from src.qb_common.cents import cents_to_display
from src.qb_common.datetime_utils import isoformat_or_empty
from src.qb_ledger.domain.models import Account, LedgerEntry

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TransferRequest(BaseModel):
    from_account_id: str = Field(..., min_length=1, max_length=64)
    to_account_id: str = Field(..., min_length=1, max_length=64)
    amount_cents: int = Field(..., gt=0, description="Amount to transfer in cents")
    description: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    id: str
    owner_id: str
    account_type: str
    name: str
    company_id: str | None
    balance_cents: int
    balance_display: str
    created_at: str

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            owner_id=account.owner_id,
            account_type=account.account_type,
            name=account.name,
            company_id=account.company_id,
            balance_cents=account.balance,
            balance_display=cents_to_display(account.balance),
            created_at=isoformat_or_empty(account.created_at),
        )


class BalanceResponse(BaseModel):
    account_id: str
    balance_cents: int
    balance_display: str

    @classmethod
    def from_cents(cls, account_id: str, balance: int) -> "BalanceResponse":
        return cls(
            account_id=account_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
        )


class TransferResponse(BaseModel):
    ledger_entry_id: int
    from_account_id: str
    to_account_id: str
    amount_cents: int
    amount_display: str
    from_balance_cents: int
    from_balance_display: str

    @classmethod
    def from_result(
        cls,
        entry_id: int,
        from_account_id: str,
        to_account_id: str,
        amount: int,
        from_balance: int,
    ) -> "TransferResponse":
        return cls(
            ledger_entry_id=entry_id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount_cents=amount,
            amount_display=cents_to_display(amount),
            from_balance_cents=from_balance,
            from_balance_display=cents_to_display(from_balance),
        )


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    direction: str  # "IN" or "OUT" relative to the requested account
    counterparty_account_id: str
    amount_cents: int
    amount_display: str
    description: str | None
    product_id: str | None
    batch_count: int | None
    tick_id: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_domain(cls, entry: LedgerEntry, account_id: str) -> "LedgerEntryItem":
        incoming = entry.to_account_id == account_id
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            direction="IN" if incoming else "OUT",
            counterparty_account_id=entry.from_account_id if incoming else entry.to_account_id,
            amount_cents=entry.amount,
            amount_display=cents_to_display(entry.amount),
            description=entry.description,
            product_id=entry.product_id,
            batch_count=entry.batch_count,
            tick_id=entry.tick_id,
            created_at=isoformat_or_empty(entry.created_at),
        )


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
