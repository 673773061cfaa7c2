"""Company lifecycle: private -> public, terminal.

Evaluated only after a settlement tick commits, and only for companies that
tick touched. Pure functions; the guarded write lives in the repository.
"""

from collections.abc import Iterable, Mapping

from src.qb_company.domain.constants import PUBLIC_LISTING_THRESHOLD
from src.qb_company.domain.models import Company


def should_go_public(is_public: bool, balance: int) -> bool:
    return not is_public and balance > PUBLIC_LISTING_THRESHOLD


def select_for_listing(
    companies: Iterable[Company], balances_by_account: Mapping[str, int]
) -> list[str]:
    """Ids of private companies whose account balance exceeds the threshold.

    A company whose account has no balance record is treated as balance 0.
    """
    return [
        c.id
        for c in companies
        if should_go_public(c.is_public, balances_by_account.get(c.account_id, 0))
    ]
