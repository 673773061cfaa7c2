"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

Balance writes go through one statement that upserts the balance record and
copies the result onto accounts.balance, so the two copies never diverge.
The row lock taken on the balance record serializes concurrent writers of the
same account until the surrounding transaction ends.

Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import AccountType, BalanceSyncDirection
from src.qb_common.errors import (
    AccountNotFoundError,
    BalanceAlreadyInitializedError,
    InternalError,
    InvalidAmountError,
)
from src.qb_common.id_generator import generate_id
from src.qb_ledger.domain.models import Account, BalanceRecord, LedgerEntry, NewLedgerEntry

# ---------------------------------------------------------------------------
# SQL: account registry
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "id, owner_id, account_type, name, company_id, balance, created_at, updated_at"

_CREATE_ACCOUNT_SQL = text(f"""
    INSERT INTO accounts (id, owner_id, account_type, name, company_id, balance)
    VALUES (:id, :owner_id, :account_type, :name, :company_id, 0)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id = :account_id
""")

_GET_ACCOUNTS_BY_IDS_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE id IN :account_ids
""").bindparams(bindparam("account_ids", expanding=True))

_LIST_ACCOUNTS_BY_OWNER_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE owner_id = :owner_id
    ORDER BY created_at ASC
""")

_GET_PERSONAL_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM accounts
    WHERE owner_id = :owner_id AND account_type = 'PERSONAL'
    ORDER BY created_at ASC
    LIMIT 1
""")

# ---------------------------------------------------------------------------
# SQL: balance cache
# ---------------------------------------------------------------------------

_GET_BALANCE_SQL = text("""
    SELECT account_id, balance, last_updated
    FROM balances
    WHERE account_id = :account_id
""")

_GET_BALANCES_SQL = text("""
    SELECT account_id, balance
    FROM balances
    WHERE account_id IN :account_ids
""").bindparams(bindparam("account_ids", expanding=True))

_APPLY_DELTA_SQL = text("""
    WITH upserted AS (
        INSERT INTO balances (account_id, balance, last_updated)
        VALUES (:account_id, :amount, NOW())
        ON CONFLICT (account_id) DO UPDATE
            SET balance = balances.balance + EXCLUDED.balance,
                last_updated = NOW()
        RETURNING account_id, balance
    )
    UPDATE accounts
    SET balance = upserted.balance,
        updated_at = NOW()
    FROM upserted
    WHERE accounts.id = upserted.account_id
    RETURNING upserted.balance AS balance
""")

_INITIALIZE_BALANCE_SQL = text("""
    WITH inserted AS (
        INSERT INTO balances (account_id, balance, last_updated)
        VALUES (:account_id, :amount, NOW())
        ON CONFLICT (account_id) DO NOTHING
        RETURNING account_id, balance
    )
    UPDATE accounts
    SET balance = inserted.balance,
        updated_at = NOW()
    FROM inserted
    WHERE accounts.id = inserted.account_id
    RETURNING inserted.balance AS balance
""")

_OVERWRITE_BALANCE_SQL = text("""
    WITH upserted AS (
        INSERT INTO balances (account_id, balance, last_updated)
        VALUES (:account_id, :amount, NOW())
        ON CONFLICT (account_id) DO UPDATE
            SET balance = EXCLUDED.balance,
                last_updated = NOW()
        RETURNING account_id, balance
    )
    UPDATE accounts
    SET balance = upserted.balance,
        updated_at = NOW()
    FROM upserted
    WHERE accounts.id = upserted.account_id
    RETURNING upserted.balance AS balance
""")

_SYNC_ACCOUNT_TO_BALANCE_SQL = text("""
    INSERT INTO balances (account_id, balance, last_updated)
    SELECT id, balance, NOW()
    FROM accounts
    WHERE CAST(:account_id AS VARCHAR) IS NULL OR id = CAST(:account_id AS VARCHAR)
    ON CONFLICT (account_id) DO UPDATE
        SET balance = EXCLUDED.balance,
            last_updated = NOW()
    RETURNING account_id, balance
""")

_SYNC_BALANCE_TO_ACCOUNT_SQL = text("""
    UPDATE accounts
    SET balance = b.balance,
        updated_at = NOW()
    FROM balances b
    WHERE accounts.id = b.account_id
      AND (CAST(:account_id AS VARCHAR) IS NULL OR accounts.id = CAST(:account_id AS VARCHAR))
    RETURNING accounts.id AS account_id, accounts.balance AS balance
""")

# ---------------------------------------------------------------------------
# SQL: ledger store
# ---------------------------------------------------------------------------

_LEDGER_COLUMNS = (
    "id, from_account_id, to_account_id, amount, entry_type, description,"
    " product_id, batch_count, tick_id, created_at"
)

_INSERT_LEDGER_SQL = text(f"""
    INSERT INTO ledger_entries
        (from_account_id, to_account_id, amount, entry_type, description,
         product_id, batch_count, tick_id)
    VALUES
        (:from_account_id, :to_account_id, :amount, :entry_type, :description,
         :product_id, :batch_count, :tick_id)
    RETURNING {_LEDGER_COLUMNS}
""")

_INSERT_LEDGER_BATCH_SQL = text("""
    INSERT INTO ledger_entries
        (from_account_id, to_account_id, amount, entry_type, description,
         product_id, batch_count, tick_id)
    VALUES
        (:from_account_id, :to_account_id, :amount, :entry_type, :description,
         :product_id, :batch_count, :tick_id)
""")

_LEDGER_BALANCE_SQL = text("""
    SELECT
        COALESCE(SUM(CASE WHEN to_account_id = :account_id THEN amount ELSE 0 END), 0)
      - COALESCE(SUM(CASE WHEN from_account_id = :account_id THEN amount ELSE 0 END), 0)
    FROM ledger_entries
    WHERE to_account_id = :account_id OR from_account_id = :account_id
""")

_LIST_LEDGER_SQL = text(f"""
    SELECT {_LEDGER_COLUMNS}
    FROM ledger_entries
    WHERE (from_account_id = :account_id OR to_account_id = :account_id)
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS VARCHAR) IS NULL OR entry_type = CAST(:entry_type AS VARCHAR))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: object) -> Account:
    return Account(
        id=row.id,  # type: ignore[attr-defined]
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        account_type=row.account_type,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        company_id=row.company_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        from_account_id=row.from_account_id,  # type: ignore[attr-defined]
        to_account_id=row.to_account_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        product_id=row.product_id,  # type: ignore[attr-defined]
        batch_count=row.batch_count,  # type: ignore[attr-defined]
        tick_id=row.tick_id,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _entry_params(entry: NewLedgerEntry) -> dict[str, object]:
    if entry.amount <= 0:
        raise InvalidAmountError(entry.amount)
    return {
        "from_account_id": entry.from_account_id,
        "to_account_id": entry.to_account_id,
        "amount": entry.amount,
        "entry_type": entry.entry_type,
        "description": entry.description,
        "product_id": entry.product_id,
        "batch_count": entry.batch_count,
        "tick_id": entry.tick_id,
    }


class LedgerRepository:
    """Concrete repository — every balance write is a single atomic statement."""

    # --- account registry ---

    async def create_account(
        self,
        db: AsyncSession,
        owner_id: str,
        account_type: str,
        name: str,
        company_id: str | None = None,
    ) -> Account:
        result = await db.execute(
            _CREATE_ACCOUNT_SQL,
            {
                "id": generate_id(),
                "owner_id": owner_id,
                "account_type": AccountType(account_type).value,
                "name": name,
                "company_id": company_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows")
        return _row_to_account(row)

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"account_id": account_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_accounts_by_ids(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]:
        if not account_ids:
            return {}
        result = await db.execute(_GET_ACCOUNTS_BY_IDS_SQL, {"account_ids": account_ids})
        accounts = [_row_to_account(row) for row in result.fetchall()]
        return {a.id: a for a in accounts}

    async def list_accounts_by_owner(self, db: AsyncSession, owner_id: str) -> list[Account]:
        result = await db.execute(_LIST_ACCOUNTS_BY_OWNER_SQL, {"owner_id": owner_id})
        return [_row_to_account(row) for row in result.fetchall()]

    async def get_personal_account(self, db: AsyncSession, owner_id: str) -> Account | None:
        result = await db.execute(_GET_PERSONAL_ACCOUNT_SQL, {"owner_id": owner_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    # --- balance cache ---

    async def get_balance(self, db: AsyncSession, account_id: str) -> int:
        record = await self.get_balance_record(db, account_id)
        return record.balance if record else 0

    async def get_balances(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, int]:
        if not account_ids:
            return {}
        result = await db.execute(_GET_BALANCES_SQL, {"account_ids": account_ids})
        return {row.account_id: row.balance for row in result.fetchall()}

    async def get_balance_record(
        self, db: AsyncSession, account_id: str
    ) -> BalanceRecord | None:
        result = await db.execute(_GET_BALANCE_SQL, {"account_id": account_id})
        row = result.fetchone()
        if row is None:
            return None
        return BalanceRecord(
            account_id=row.account_id,
            balance=row.balance,
            last_updated=row.last_updated,
        )

    async def apply_delta(self, db: AsyncSession, account_id: str, amount: int) -> int:
        """Add a signed delta to both balance copies; returns the new balance."""
        try:
            result = await db.execute(
                _APPLY_DELTA_SQL, {"account_id": account_id, "amount": amount}
            )
        except IntegrityError:
            raise AccountNotFoundError(account_id) from None
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return int(row.balance)

    async def initialize_balance(self, db: AsyncSession, account_id: str, amount: int) -> int:
        try:
            result = await db.execute(
                _INITIALIZE_BALANCE_SQL, {"account_id": account_id, "amount": amount}
            )
        except IntegrityError:
            raise AccountNotFoundError(account_id) from None
        row = result.fetchone()
        if row is None:
            raise BalanceAlreadyInitializedError(account_id)
        return int(row.balance)

    async def overwrite_balance(self, db: AsyncSession, account_id: str, amount: int) -> int:
        """Repair only: set both copies to an externally computed value."""
        try:
            result = await db.execute(
                _OVERWRITE_BALANCE_SQL, {"account_id": account_id, "amount": amount}
            )
        except IntegrityError:
            raise AccountNotFoundError(account_id) from None
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return int(row.balance)

    async def sync_balances(
        self,
        db: AsyncSession,
        direction: BalanceSyncDirection,
        account_id: str | None = None,
    ) -> dict[str, int]:
        """Copy one side of the dual balance onto the other. Repair only."""
        sql = (
            _SYNC_ACCOUNT_TO_BALANCE_SQL
            if direction == BalanceSyncDirection.ACCOUNT_TO_BALANCE
            else _SYNC_BALANCE_TO_ACCOUNT_SQL
        )
        result = await db.execute(sql, {"account_id": account_id})
        return {row.account_id: row.balance for row in result.fetchall()}

    # --- ledger store ---

    async def record_transfer(
        self,
        db: AsyncSession,
        from_account_id: str,
        to_account_id: str,
        amount: int,
        entry_type: str,
        description: str | None = None,
        product_id: str | None = None,
        batch_count: int | None = None,
        tick_id: str | None = None,
    ) -> int:
        """Append one entry. Balances are NOT touched; callers apply both deltas."""
        params = _entry_params(
            NewLedgerEntry(
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount,
                entry_type=entry_type,
                description=description,
                product_id=product_id,
                batch_count=batch_count,
                tick_id=tick_id,
            )
        )
        result = await db.execute(_INSERT_LEDGER_SQL, params)
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return int(row.id)

    async def record_transfers(self, db: AsyncSession, entries: list[NewLedgerEntry]) -> None:
        if not entries:
            return
        await db.execute(_INSERT_LEDGER_BATCH_SQL, [_entry_params(e) for e in entries])

    async def ledger_balance(self, db: AsyncSession, account_id: str) -> int:
        """Replay fallback: incoming minus outgoing. Never used on a hot path."""
        result = await db.execute(_LEDGER_BALANCE_SQL, {"account_id": account_id})
        return int(result.scalar_one())

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "account_id": account_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]
