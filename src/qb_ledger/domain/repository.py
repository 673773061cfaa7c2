"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import BalanceSyncDirection
from src.qb_ledger.domain.models import Account, BalanceRecord, LedgerEntry, NewLedgerEntry


class LedgerRepositoryProtocol(Protocol):
    # --- account registry ---

    async def create_account(
        self,
        db: AsyncSession,
        owner_id: str,
        account_type: str,
        name: str,
        company_id: str | None = None,
    ) -> Account: ...

    async def get_account(self, db: AsyncSession, account_id: str) -> Account | None: ...

    async def get_accounts_by_ids(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, Account]: ...

    async def list_accounts_by_owner(self, db: AsyncSession, owner_id: str) -> list[Account]: ...

    async def get_personal_account(self, db: AsyncSession, owner_id: str) -> Account | None: ...

    # --- balance cache ---

    async def get_balance(self, db: AsyncSession, account_id: str) -> int: ...

    async def get_balances(
        self, db: AsyncSession, account_ids: list[str]
    ) -> dict[str, int]: ...

    async def get_balance_record(
        self, db: AsyncSession, account_id: str
    ) -> BalanceRecord | None: ...

    async def apply_delta(self, db: AsyncSession, account_id: str, amount: int) -> int: ...

    async def initialize_balance(self, db: AsyncSession, account_id: str, amount: int) -> int: ...

    async def overwrite_balance(self, db: AsyncSession, account_id: str, amount: int) -> int: ...

    async def sync_balances(
        self,
        db: AsyncSession,
        direction: BalanceSyncDirection,
        account_id: str | None = None,
    ) -> dict[str, int]: ...

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
    ) -> int: ...

    async def record_transfers(self, db: AsyncSession, entries: list[NewLedgerEntry]) -> None: ...

    async def ledger_balance(self, db: AsyncSession, account_id: str) -> int: ...

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]: ...
