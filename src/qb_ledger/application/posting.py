"""Posting helper: one ledger entry plus the two matching balance deltas.

Runs inside the caller's transaction; the caller commits or rolls back.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.qb_common.errors import InsufficientBalanceError, InvalidAmountError
from src.qb_ledger.domain.repository import LedgerRepositoryProtocol


async def post_transfer(
    repo: LedgerRepositoryProtocol,
    db: AsyncSession,
    from_account_id: str,
    to_account_id: str,
    amount: int,
    entry_type: str,
    description: str | None = None,
    allow_overdraft: bool = False,
) -> tuple[int, int]:
    """Move `amount` cents and return (ledger_entry_id, new source balance).

    Deltas are applied in account-id order so two opposite transfers lock the
    balance rows in the same order. The source balance is checked against the
    value returned by its own delta, under the row lock, so there is no window
    between check and debit.
    """
    if amount <= 0:
        raise InvalidAmountError(amount)

    deltas = {from_account_id: -amount}
    deltas[to_account_id] = deltas.get(to_account_id, 0) + amount

    new_balances: dict[str, int] = {}
    for account_id in sorted(deltas):
        new_balances[account_id] = await repo.apply_delta(db, account_id, deltas[account_id])

    from_balance = new_balances[from_account_id]
    if not allow_overdraft and from_balance < 0:
        raise InsufficientBalanceError(required=amount, available=from_balance + amount)

    entry_id = await repo.record_transfer(
        db,
        from_account_id=from_account_id,
        to_account_id=to_account_id,
        amount=amount,
        entry_type=entry_type,
        description=description,
    )
    return entry_id, from_balance
