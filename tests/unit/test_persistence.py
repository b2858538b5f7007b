"""Unit tests for the raw-SQL repositories using MagicMock AsyncSession."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.ds_common.enums import VaultMovementType
from src.ds_common.errors import (
    BalanceOverflowError,
    InsufficientAllowanceError,
    InsufficientFundsError,
)
from src.ds_escrow.infrastructure.persistence import TradeRepository
from src.ds_savings.infrastructure.persistence import SavingsRepository
from src.ds_token.infrastructure.persistence import SqlTokenLedger
from src.ds_vault.domain.models import VaultMovement
from src.ds_vault.infrastructure.persistence import VaultRepository


def _result(row=None, rows=None, scalar=None):
    result = MagicMock()
    result.fetchone.return_value = row
    result.fetchall.return_value = rows or []
    result.scalar_one.return_value = scalar
    return result


def _amount_row(amount):
    row = MagicMock()
    row.amount = amount
    return row


def _trade_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", 1)
    row.seller = kwargs.get("seller", "0xalice")
    row.buyer = kwargs.get("buyer", "0xbob")
    row.asset = kwargs.get("asset", "USDC")
    row.amount = kwargs.get("amount", Decimal("100"))
    row.description = kwargs.get("description", "")
    row.seller_deposited = True
    row.buyer_confirmed = kwargs.get("buyer_confirmed", False)
    row.completed = kwargs.get("completed", False)
    row.cancelled = kwargs.get("cancelled", False)
    row.is_native = kwargs.get("is_native", False)
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _sql_of(call) -> str:
    return str(call.args[0])


@pytest.fixture
def db():
    session = MagicMock()
    session.execute = AsyncMock()
    return session


class TestSqlTokenLedger:
    async def test_balance_of_converts_numeric(self, db) -> None:
        db.execute.return_value = _result(row=_amount_row(Decimal("12345678901234567890")))
        assert await SqlTokenLedger().balance_of(db, "0xa", "USDC") == 12345678901234567890

    async def test_balance_of_missing_row_is_zero(self, db) -> None:
        db.execute.return_value = _result(row=None)
        assert await SqlTokenLedger().balance_of(db, "0xa", "USDC") == 0

    async def test_transfer_locks_then_debits_then_credits(self, db) -> None:
        db.execute.side_effect = [
            _result(),
            _result(row=_amount_row(0)),
            _result(row=_amount_row(10)),
        ]
        await SqlTokenLedger().transfer(db, "0xa", "0xb", "USDC", 10)
        lock, first, second = db.execute.await_args_list
        assert "FOR UPDATE" in _sql_of(lock)
        assert "ORDER BY account" in _sql_of(lock)
        assert "amount >= :amount" in _sql_of(first)
        assert first.args[1] == {"account": "0xa", "asset": "USDC", "amount": 10}
        assert "ON CONFLICT" in _sql_of(second)
        assert second.args[1]["account"] == "0xb"

    async def test_transfer_guard_miss_raises_with_available(self, db) -> None:
        db.execute.side_effect = [_result(), _result(row=None), _result(row=_amount_row(4))]
        with pytest.raises(InsufficientFundsError) as exc_info:
            await SqlTokenLedger().transfer(db, "0xa", "0xb", "USDC", 10)
        assert exc_info.value.available == 4
        assert db.execute.await_count == 3

    async def test_transfer_from_allowance_miss(self, db) -> None:
        db.execute.side_effect = [_result(row=None), _result(row=None)]
        with pytest.raises(InsufficientAllowanceError) as exc_info:
            await SqlTokenLedger().transfer_from(db, "custody:escrow", "0xa", "custody:escrow", "USDC", 5)
        assert exc_info.value.available == 0
        assert exc_info.value.reason == "allowance"

    async def test_mint_returns_new_balance(self, db) -> None:
        db.execute.return_value = _result(row=_amount_row(Decimal("75")))
        assert await SqlTokenLedger().mint(db, "0xa", "USDC", 25) == 75
        assert db.execute.await_args.args[1]["max_amount"] == 2**256 - 1

    async def test_mint_past_ceiling_raises_overflow(self, db) -> None:
        db.execute.return_value = _result(row=None)
        with pytest.raises(BalanceOverflowError):
            await SqlTokenLedger().mint(db, "0xa", "USDC", 25)

    async def test_lock_and_release_take_rows_in_the_same_order(self, db) -> None:
        db.execute.side_effect = [
            _result(),
            _result(row=_amount_row(0)),
            _result(row=_amount_row(10)),
        ] * 2
        ledger = SqlTokenLedger()

        await ledger.transfer(db, "alice", "custody:vault", "USDC", 10)
        await ledger.transfer(db, "custody:vault", "alice", "USDC", 10)

        lock_in, lock_out = (
            c for c in db.execute.await_args_list if "FOR UPDATE" in _sql_of(c)
        )
        assert lock_in.args[1]["accounts"] == ["alice", "custody:vault"]
        assert lock_out.args[1]["accounts"] == lock_in.args[1]["accounts"]


class TestTradeRepository:
    async def test_create_maps_row(self, db) -> None:
        db.execute.return_value = _result(row=_trade_row(id=9, amount=Decimal("5")))
        trade = await TradeRepository().create(db, "0xalice", "0xbob", "USDC", 5, "", False)
        assert trade.id == 9
        assert trade.amount == 5
        assert isinstance(trade.amount, int)

    async def test_mark_completed_is_guarded(self, db) -> None:
        db.execute.return_value = _result(row=_trade_row(buyer_confirmed=True, completed=True))
        trade = await TradeRepository().mark_completed(db, 1)
        sql = _sql_of(db.execute.await_args)
        assert "completed = FALSE AND cancelled = FALSE" in sql
        assert trade is not None and trade.status.value == "COMPLETED"

    async def test_mark_cancelled_guard_miss_returns_none(self, db) -> None:
        db.execute.return_value = _result(row=None)
        assert await TradeRepository().mark_cancelled(db, 1) is None
        assert "buyer_confirmed = FALSE" in _sql_of(db.execute.await_args)

    async def test_get_by_id_not_found(self, db) -> None:
        db.execute.return_value = _result(row=None)
        assert await TradeRepository().get_by_id(db, 404) is None

    async def test_list_passes_filters(self, db) -> None:
        db.execute.return_value = _result(rows=[_trade_row(id=3), _trade_row(id=2)])
        trades = await TradeRepository().list_by_account(db, "0xalice", "SELLER", "PENDING", 4, 21)
        assert [t.id for t in trades] == [3, 2]
        params = db.execute.await_args.args[1]
        assert params == {
            "account": "0xalice",
            "role": "SELLER",
            "status": "PENDING",
            "cursor_id": 4,
            "limit": 21,
        }


class TestSavingsRepository:
    def _entry_row(self, index: int, withdrawn: bool = False):
        row = MagicMock()
        row.account = "0xalice"
        row.entry_index = index
        row.asset = "DAI"
        row.amount = Decimal("10")
        row.unlock_time = datetime(2026, 1, 4, tzinfo=UTC)
        row.goal_name = ""
        row.withdrawn = withdrawn
        row.created_at = datetime(2026, 1, 1, tzinfo=UTC)
        row.withdrawn_at = None
        return row

    async def test_append_allocates_index_then_inserts(self, db) -> None:
        db.execute.side_effect = [_result(scalar=2), _result(row=self._entry_row(2))]
        now = datetime(2026, 1, 1, tzinfo=UTC)
        entry = await SavingsRepository().append(
            db, "0xalice", "DAI", 10, now + timedelta(days=3), "", now
        )
        counter_call, insert_call = db.execute.await_args_list
        assert "savings_counters" in _sql_of(counter_call)
        assert "ON CONFLICT (account) DO UPDATE" in _sql_of(counter_call)
        assert insert_call.args[1]["entry_index"] == 2
        assert entry.index == 2
        assert entry.amount == 10

    async def test_mark_withdrawn_guards_time_and_flag(self, db) -> None:
        db.execute.return_value = _result(row=None)
        now = datetime(2026, 1, 2, tzinfo=UTC)
        assert await SavingsRepository().mark_withdrawn(db, "0xalice", 0, now) is None
        sql = _sql_of(db.execute.await_args)
        assert "withdrawn = FALSE" in sql
        assert "unlock_time <= :now" in sql
        assert db.execute.await_args.args[1]["now"] == now


class TestVaultRepository:
    async def test_credit_past_ceiling_raises_overflow(self, db) -> None:
        db.execute.return_value = _result(row=None)
        with pytest.raises(BalanceOverflowError):
            await VaultRepository().credit(db, "0xalice", "USDC", 5)
        assert "<= :max_amount" in _sql_of(db.execute.await_args)

    async def test_debit_guard_miss_returns_none(self, db) -> None:
        db.execute.return_value = _result(row=None)
        assert await VaultRepository().debit(db, "0xalice", "USDC", 5) is None

    async def test_debit_returns_new_balance(self, db) -> None:
        db.execute.return_value = _result(row=_amount_row(Decimal("15")))
        assert await VaultRepository().debit(db, "0xalice", "USDC", 5) == 15

    async def test_record_movement_writes_type(self, db) -> None:
        movement = VaultMovement(
            account="0xalice",
            asset="USDC",
            movement_type=VaultMovementType.WITHDRAW,
            amount=5,
            balance_after=15,
        )
        await VaultRepository().record_movement(db, movement)
        assert db.execute.await_args.args[1]["movement_type"] == "WITHDRAW"
