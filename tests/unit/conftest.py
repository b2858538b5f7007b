"""In-memory fakes conforming to the repository Protocols.

All fakes share one FakeState. FakeSession.commit() checkpoints it and
rollback() restores the last checkpoint, so a unit of work that raises
leaves the state exactly as it was before the call.

Read paths yield to the event loop once (asyncio.sleep(0)) so that calls
started together with asyncio.gather interleave between "read" and
"guarded write" the way two database sessions would.
"""

import asyncio
import copy
import dataclasses
from datetime import UTC, datetime, timedelta

import pytest

from src.ds_common.amounts import MAX_AMOUNT
from src.ds_common.errors import (
    BalanceOverflowError,
    InsufficientAllowanceError,
    InsufficientFundsError,
)
from src.ds_common.events import LedgerEvent
from src.ds_escrow.application.service import EscrowApplicationService
from src.ds_escrow.domain.models import Trade
from src.ds_savings.application.service import SavingsApplicationService
from src.ds_savings.domain.models import SavingsEntry
from src.ds_token.application.service import TokenApplicationService
from src.ds_vault.application.service import VaultApplicationService
from src.ds_vault.domain.models import VaultBalance, VaultMovement

ESCROW = "custody:escrow"
SAVINGS = "custody:savings"
VAULT = "custody:vault"


class FakeState:
    def __init__(self) -> None:
        self.balances: dict[tuple[str, str], int] = {}
        self.allowances: dict[tuple[str, str, str], int] = {}
        self.trades: dict[int, Trade] = {}
        self.next_trade_id = 1
        self.savings: dict[tuple[str, int], SavingsEntry] = {}
        self.savings_counters: dict[str, int] = {}
        self.vault: dict[tuple[str, str], int] = {}
        self.vault_movements: list[VaultMovement] = []
        self.events: list[LedgerEvent] = []
        self._checkpoint: dict[str, object] = {}
        self.checkpoint()

    def _data(self) -> dict[str, object]:
        return {k: v for k, v in vars(self).items() if k != "_checkpoint"}

    def checkpoint(self) -> None:
        self._checkpoint = copy.deepcopy(self._data())

    def restore(self) -> None:
        for key, value in copy.deepcopy(self._checkpoint).items():
            setattr(self, key, value)


class FakeSession:
    def __init__(self, state: FakeState) -> None:
        self.state = state
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1
        self.state.checkpoint()

    async def rollback(self) -> None:
        self.rollbacks += 1
        self.state.restore()


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeTokenLedger:
    def __init__(self, state: FakeState) -> None:
        self.state = state
        self.locks: list[tuple[str, tuple[str, ...]]] = []

    async def balance_of(self, db, account, asset) -> int:
        return self.state.balances.get((account, asset), 0)

    async def allowance(self, db, owner, spender, asset) -> int:
        return self.state.allowances.get((owner, spender, asset), 0)

    async def lock_balances(self, db, asset, *accounts) -> None:
        self.locks.append((asset, tuple(sorted(set(accounts)))))

    async def transfer(self, db, owner, recipient, asset, amount) -> None:
        await self.lock_balances(db, asset, owner, recipient)
        available = self.state.balances.get((owner, asset), 0)
        if available < amount:
            raise InsufficientFundsError(amount, available)
        self.state.balances[(owner, asset)] = available - amount
        self._credit(recipient, asset, amount)

    async def transfer_from(self, db, spender, owner, recipient, asset, amount) -> None:
        granted = self.state.allowances.get((owner, spender, asset), 0)
        if granted < amount:
            raise InsufficientAllowanceError(amount, granted)
        self.state.allowances[(owner, spender, asset)] = granted - amount
        await self.transfer(db, owner, recipient, asset, amount)

    async def approve(self, db, owner, spender, asset, amount) -> None:
        self.state.allowances[(owner, spender, asset)] = amount

    async def mint(self, db, account, asset, amount) -> int:
        return self._credit(account, asset, amount)

    def _credit(self, account, asset, amount) -> int:
        key = (account, asset)
        new_balance = self.state.balances.get(key, 0) + amount
        if new_balance > MAX_AMOUNT:
            raise BalanceOverflowError(account, asset)
        self.state.balances[key] = new_balance
        return new_balance


class FakeEventLog:
    def __init__(self, state: FakeState) -> None:
        self.state = state

    async def append(self, db, event: LedgerEvent) -> None:
        self.state.events.append(event)


class FakeTradeRepository:
    def __init__(self, state: FakeState) -> None:
        self.state = state

    async def create(self, db, seller, buyer, asset, amount, description, is_native) -> Trade:
        now = datetime.now(UTC)
        trade = Trade(
            id=self.state.next_trade_id,
            seller=seller,
            buyer=buyer,
            asset=asset,
            amount=amount,
            description=description,
            is_native=is_native,
            created_at=now,
            updated_at=now,
        )
        self.state.trades[trade.id] = trade
        self.state.next_trade_id += 1
        return dataclasses.replace(trade)

    async def get_by_id(self, db, trade_id) -> Trade | None:
        await asyncio.sleep(0)
        trade = self.state.trades.get(trade_id)
        return dataclasses.replace(trade) if trade else None

    async def mark_completed(self, db, trade_id) -> Trade | None:
        trade = self.state.trades.get(trade_id)
        if trade is None or trade.completed or trade.cancelled:
            return None
        trade.buyer_confirmed = True
        trade.completed = True
        return dataclasses.replace(trade)

    async def mark_cancelled(self, db, trade_id) -> Trade | None:
        trade = self.state.trades.get(trade_id)
        if trade is None or trade.buyer_confirmed or trade.completed or trade.cancelled:
            return None
        trade.cancelled = True
        return dataclasses.replace(trade)

    async def list_by_account(self, db, account, role, status, cursor_id, limit) -> list[Trade]:
        def matches(t: Trade) -> bool:
            if role == "SELLER" and t.seller != account:
                return False
            if role == "BUYER" and t.buyer != account:
                return False
            if role == "ANY" and account not in (t.seller, t.buyer):
                return False
            if status is not None and t.status.value != status:
                return False
            return cursor_id is None or t.id < cursor_id

        found = sorted(
            (t for t in self.state.trades.values() if matches(t)),
            key=lambda t: t.id,
            reverse=True,
        )
        return [dataclasses.replace(t) for t in found[:limit]]


class FakeSavingsRepository:
    def __init__(self, state: FakeState) -> None:
        self.state = state

    async def append(
        self, db, account, asset, amount, unlock_time, goal_name, created_at
    ) -> SavingsEntry:
        index = self.state.savings_counters.get(account, 0)
        self.state.savings_counters[account] = index + 1
        entry = SavingsEntry(
            account=account,
            index=index,
            asset=asset,
            amount=amount,
            unlock_time=unlock_time,
            goal_name=goal_name,
            created_at=created_at,
        )
        self.state.savings[(account, index)] = entry
        return dataclasses.replace(entry)

    async def get(self, db, account, index) -> SavingsEntry | None:
        await asyncio.sleep(0)
        entry = self.state.savings.get((account, index))
        return dataclasses.replace(entry) if entry else None

    async def mark_withdrawn(self, db, account, index, now) -> SavingsEntry | None:
        entry = self.state.savings.get((account, index))
        if entry is None or entry.withdrawn or entry.unlock_time > now:
            return None
        entry.withdrawn = True
        entry.withdrawn_at = now
        return dataclasses.replace(entry)

    async def list_by_account(self, db, account) -> list[SavingsEntry]:
        entries = [e for (acct, _), e in self.state.savings.items() if acct == account]
        return [dataclasses.replace(e) for e in sorted(entries, key=lambda e: e.index)]


class FakeVaultRepository:
    def __init__(self, state: FakeState) -> None:
        self.state = state

    async def credit(self, db, account, asset, amount) -> int:
        await asyncio.sleep(0)
        key = (account, asset)
        self.state.vault[key] = self.state.vault.get(key, 0) + amount
        return self.state.vault[key]

    async def debit(self, db, account, asset, amount) -> int | None:
        await asyncio.sleep(0)
        key = (account, asset)
        current = self.state.vault.get(key, 0)
        if current < amount:
            return None
        self.state.vault[key] = current - amount
        return self.state.vault[key]

    async def get_balance(self, db, account, asset) -> int:
        return self.state.vault.get((account, asset), 0)

    async def list_balances(self, db, account) -> list[VaultBalance]:
        return [
            VaultBalance(account=acct, asset=asset, amount=amount)
            for (acct, asset), amount in sorted(self.state.vault.items())
            if acct == account and amount > 0
        ]

    async def record_movement(self, db, movement: VaultMovement) -> None:
        self.state.vault_movements.append(movement)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def state() -> FakeState:
    return FakeState()


@pytest.fixture
def db(state: FakeState) -> FakeSession:
    return FakeSession(state)


@pytest.fixture
def ledger(state: FakeState) -> FakeTokenLedger:
    return FakeTokenLedger(state)


@pytest.fixture
def event_log(state: FakeState) -> FakeEventLog:
    return FakeEventLog(state)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 1, tzinfo=UTC))


@pytest.fixture
def token_service(ledger: FakeTokenLedger, event_log: FakeEventLog) -> TokenApplicationService:
    return TokenApplicationService(ledger=ledger, event_log=event_log)


@pytest.fixture
def escrow_service(
    state: FakeState, ledger: FakeTokenLedger, event_log: FakeEventLog
) -> EscrowApplicationService:
    return EscrowApplicationService(
        repo=FakeTradeRepository(state),
        ledger=ledger,
        event_log=event_log,
        custody_account=ESCROW,
    )


@pytest.fixture
def savings_service(
    state: FakeState, ledger: FakeTokenLedger, event_log: FakeEventLog, clock: FakeClock
) -> SavingsApplicationService:
    return SavingsApplicationService(
        repo=FakeSavingsRepository(state),
        ledger=ledger,
        event_log=event_log,
        custody_account=SAVINGS,
        clock=clock,
        min_lock_days=3,
    )


@pytest.fixture
def vault_service(
    state: FakeState, ledger: FakeTokenLedger, event_log: FakeEventLog
) -> VaultApplicationService:
    return VaultApplicationService(
        repo=FakeVaultRepository(state),
        ledger=ledger,
        event_log=event_log,
        custody_account=VAULT,
    )


@pytest.fixture
def fund(state: FakeState):
    """Seed a balance and an allowance to a custody account, as committed state."""

    def _fund(account: str, asset: str, amount: int, spender: str | None = None) -> None:
        state.balances[(account, asset)] = state.balances.get((account, asset), 0) + amount
        if spender is not None:
            state.allowances[(account, spender, asset)] = amount
        state.checkpoint()

    return _fund
