"""LedgerApplicationService — thin composition layer.

Combines repository calls with schema transformations.
Write operations commit on success and roll back then re-raise on failure.
Read-only operations run without an explicit transaction.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.enums import AccountType, LedgerEntryType
from src.qb_common.errors import (
    AccountNotFoundError,
    NotAccountOwnerError,
    PersonalAccountNotFoundError,
)
from src.qb_ledger.application.posting import post_transfer
from src.qb_ledger.application.schemas import (
    AccountResponse,
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    TransferResponse,
    cursor_decode,
    cursor_encode,
)
from src.qb_ledger.domain.constants import (
    PERSONAL_ACCOUNT_NAME,
    PERSONAL_INITIAL_DEPOSIT,
    SYSTEM_ACCOUNT_ID,
)
from src.qb_ledger.domain.models import Account
from src.qb_ledger.domain.repository import LedgerRepositoryProtocol
from src.qb_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


class LedgerApplicationService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def _get_owned_account(
        self, db: AsyncSession, owner_id: str, account_id: str
    ) -> Account:
        account = await self._repo.get_account(db, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if account.owner_id != owner_id:
            raise NotAccountOwnerError(account_id)
        return account

    async def open_personal_account(self, db: AsyncSession, owner_id: str) -> AccountResponse:
        """Create the owner's personal account funded with the initial deposit.

        Idempotent: a second call returns the existing account unchanged.
        """
        existing = await self._repo.get_personal_account(db, owner_id)
        if existing is not None:
            return AccountResponse.from_domain(existing)

        try:
            account = await self._repo.create_account(
                db, owner_id, AccountType.PERSONAL.value, PERSONAL_ACCOUNT_NAME
            )
            await self._repo.initialize_balance(db, account.id, 0)
            await post_transfer(
                self._repo,
                db,
                from_account_id=SYSTEM_ACCOUNT_ID,
                to_account_id=account.id,
                amount=PERSONAL_INITIAL_DEPOSIT,
                entry_type=LedgerEntryType.INITIAL_DEPOSIT.value,
                description="Initial deposit",
                allow_overdraft=True,
            )
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent open for the same owner
            await db.rollback()
            existing = await self._repo.get_personal_account(db, owner_id)
            if existing is None:
                raise
            return AccountResponse.from_domain(existing)
        except Exception:
            await db.rollback()
            raise

        account.balance = PERSONAL_INITIAL_DEPOSIT
        logger.info("Opened personal account %s for %s", account.id, owner_id)
        return AccountResponse.from_domain(account)

    async def get_personal_account(self, db: AsyncSession, owner_id: str) -> Account:
        account = await self._repo.get_personal_account(db, owner_id)
        if account is None:
            raise PersonalAccountNotFoundError(owner_id)
        return account

    async def get_balance(
        self, db: AsyncSession, owner_id: str, account_id: str
    ) -> BalanceResponse:
        await self._get_owned_account(db, owner_id, account_id)
        balance = await self._repo.get_balance(db, account_id)
        return BalanceResponse.from_cents(account_id, balance)

    async def transfer(
        self,
        db: AsyncSession,
        owner_id: str,
        from_account_id: str,
        to_account_id: str,
        amount_cents: int,
        description: str | None = None,
    ) -> TransferResponse:
        await self._get_owned_account(db, owner_id, from_account_id)
        if await self._repo.get_account(db, to_account_id) is None:
            raise AccountNotFoundError(to_account_id)

        try:
            entry_id, from_balance = await post_transfer(
                self._repo,
                db,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                amount=amount_cents,
                entry_type=LedgerEntryType.TRANSFER.value,
                description=description,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return TransferResponse.from_result(
            entry_id=entry_id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount_cents,
            from_balance=from_balance,
        )

    async def list_accounts(self, db: AsyncSession, owner_id: str) -> list[AccountResponse]:
        accounts = await self._repo.list_accounts_by_owner(db, owner_id)
        return [AccountResponse.from_domain(a) for a in accounts]

    async def list_ledger(
        self,
        db: AsyncSession,
        owner_id: str,
        account_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        await self._get_owned_account(db, owner_id, account_id)
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, account_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [LedgerEntryItem.from_domain(e, account_id) for e in page]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
