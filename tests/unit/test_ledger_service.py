"""LedgerApplicationService against the in-memory repositories."""

import pytest

from src.qb_common.errors import (
    AccountNotFoundError,
    InsufficientBalanceError,
    NotAccountOwnerError,
    PersonalAccountNotFoundError,
)
from src.qb_ledger.application.schemas import cursor_decode, cursor_encode
from src.qb_ledger.application.service import LedgerApplicationService
from src.qb_ledger.domain.constants import PERSONAL_INITIAL_DEPOSIT, SYSTEM_ACCOUNT_ID


@pytest.fixture
def svc(ledger_repo) -> LedgerApplicationService:
    return LedgerApplicationService(repo=ledger_repo)


def _total(store) -> int:
    return sum(store.state.balances.values())


class TestOpenPersonalAccount:
    async def test_funds_initial_deposit_from_system(self, svc, fake_db, store) -> None:
        result = await svc.open_personal_account(fake_db, "user-1")

        assert result.account_type == "PERSONAL"
        assert result.balance_cents == PERSONAL_INITIAL_DEPOSIT
        assert result.balance_display == "$10,000.00"
        assert store.state.balances[result.id] == PERSONAL_INITIAL_DEPOSIT
        assert store.state.balances[SYSTEM_ACCOUNT_ID] == -PERSONAL_INITIAL_DEPOSIT
        assert _total(store) == 0
        assert fake_db.commits == 1

    async def test_deposit_is_in_the_ledger(self, svc, fake_db, store) -> None:
        result = await svc.open_personal_account(fake_db, "user-1")

        (entry,) = store.state.ledger
        assert entry.entry_type == "INITIAL_DEPOSIT"
        assert entry.from_account_id == SYSTEM_ACCOUNT_ID
        assert entry.to_account_id == result.id
        assert store.ledger_balance(result.id) == PERSONAL_INITIAL_DEPOSIT

    async def test_idempotent(self, svc, fake_db, store) -> None:
        first = await svc.open_personal_account(fake_db, "user-1")
        second = await svc.open_personal_account(fake_db, "user-1")

        assert first.id == second.id
        assert len(store.state.ledger) == 1
        assert store.state.balances[SYSTEM_ACCOUNT_ID] == -PERSONAL_INITIAL_DEPOSIT

    async def test_get_personal_account_missing(self, svc, fake_db) -> None:
        with pytest.raises(PersonalAccountNotFoundError):
            await svc.get_personal_account(fake_db, "nobody")


class TestTransfer:
    async def test_moves_money(self, svc, fake_db, store) -> None:
        store.add_account("a", "user-1", balance=5000)
        store.add_account("b", "user-2", balance=0)

        result = await svc.transfer(fake_db, "user-1", "a", "b", 1200, "lunch")

        assert result.from_balance_cents == 3800
        assert result.amount_display == "$12.00"
        assert store.state.balances == {SYSTEM_ACCOUNT_ID: 0, "a": 3800, "b": 1200}
        assert store.state.accounts["b"].balance == 1200
        assert store.state.ledger[-1].description == "lunch"

    async def test_insufficient_balance_rolls_back(self, svc, fake_db, store) -> None:
        store.add_account("a", "user-1", balance=500)
        store.add_account("b", "user-2", balance=0)

        with pytest.raises(InsufficientBalanceError):
            await svc.transfer(fake_db, "user-1", "a", "b", 1200)

        assert store.state.balances["a"] == 500
        assert store.state.balances["b"] == 0
        assert store.state.ledger == []
        assert fake_db.rollbacks == 1

    async def test_not_owner(self, svc, fake_db, store) -> None:
        store.add_account("a", "user-1", balance=500)
        store.add_account("b", "user-2", balance=0)

        with pytest.raises(NotAccountOwnerError):
            await svc.transfer(fake_db, "user-2", "a", "b", 100)

    async def test_unknown_destination(self, svc, fake_db, store) -> None:
        store.add_account("a", "user-1", balance=500)

        with pytest.raises(AccountNotFoundError):
            await svc.transfer(fake_db, "user-1", "a", "ghost", 100)


class TestBalanceAndAccounts:
    async def test_get_balance(self, svc, fake_db, store) -> None:
        store.add_account("a", "user-1", balance=6500)
        result = await svc.get_balance(fake_db, "user-1", "a")
        assert result.balance_cents == 6500
        assert result.balance_display == "$65.00"

    async def test_get_balance_of_someone_else(self, svc, fake_db, store) -> None:
        store.add_account("a", "user-1", balance=6500)
        with pytest.raises(NotAccountOwnerError):
            await svc.get_balance(fake_db, "user-2", "a")

    async def test_list_accounts(self, svc, fake_db, store) -> None:
        store.add_account("a", "user-1")
        store.add_account("c", "user-1", account_type="COMPANY", company_id="co-1")
        store.add_account("b", "user-2")
        accounts = await svc.list_accounts(fake_db, "user-1")
        assert {a.id for a in accounts} == {"a", "c"}


class TestListLedger:
    async def _seed(self, svc, fake_db, store, transfers: int) -> None:
        store.add_account("a", "user-1", balance=10_000)
        store.add_account("b", "user-2", balance=0)
        for i in range(transfers):
            await svc.transfer(fake_db, "user-1", "a", "b", 100 + i)

    async def test_newest_first_with_direction(self, svc, fake_db, store) -> None:
        await self._seed(svc, fake_db, store, 3)

        page = await svc.list_ledger(fake_db, "user-1", "a", None, 10, None)

        assert [i.amount_cents for i in page.items] == [102, 101, 100]
        assert all(i.direction == "OUT" for i in page.items)
        assert page.items[0].counterparty_account_id == "b"
        assert page.has_more is False
        assert page.next_cursor is None

    async def test_incoming_from_the_other_side(self, svc, fake_db, store) -> None:
        await self._seed(svc, fake_db, store, 1)
        page = await svc.list_ledger(fake_db, "user-2", "b", None, 10, None)
        assert page.items[0].direction == "IN"
        assert page.items[0].counterparty_account_id == "a"

    async def test_pagination(self, svc, fake_db, store) -> None:
        await self._seed(svc, fake_db, store, 5)

        first = await svc.list_ledger(fake_db, "user-1", "a", None, 2, None)
        second = await svc.list_ledger(fake_db, "user-1", "a", first.next_cursor, 2, None)
        third = await svc.list_ledger(fake_db, "user-1", "a", second.next_cursor, 2, None)

        assert first.has_more and second.has_more
        assert not third.has_more
        ids = [i.id for i in first.items + second.items + third.items]
        assert ids == sorted(ids, reverse=True)
        assert len(set(ids)) == 5

    async def test_entry_type_filter(self, svc, fake_db, store) -> None:
        await self._seed(svc, fake_db, store, 2)
        page = await svc.list_ledger(fake_db, "user-1", "a", None, 10, "MARKETPLACE_BATCH")
        assert page.items == []


class TestCursor:
    def test_round_trip(self) -> None:
        assert cursor_decode(cursor_encode(12345)) == 12345

    def test_none(self) -> None:
        assert cursor_decode(None) is None

    def test_garbage_is_ignored(self) -> None:
        assert cursor_decode("!!!not-base64!!!") is None
