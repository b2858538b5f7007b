"""SavingsApplicationService: self-custodial time-locked holds.

Each account owns an append-only sequence of entries. An entry is released in
full, to its owner only, once the clock reaches its unlock_time, and never again.
"""

import logging
from datetime import datetime, timedelta
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ds_common.amounts import validate_amount
from src.ds_common.database import unit_of_work
from src.ds_common.datetime_utils import SECONDS_PER_DAY, Clock, seconds_until, utc_now
from src.ds_common.enums import Engine, LedgerEventType
from src.ds_common.errors import (
    InvalidIdentifierError,
    LockPeriodTooLongError,
    LockPeriodTooShortError,
    NotYetUnlockedError,
    SavingAlreadyWithdrawnError,
    SavingNotFoundError,
)
from src.ds_common.events import EventLogProtocol, LedgerEvent, SqlEventLog
from src.ds_common.identifiers import validate_account, validate_asset, validate_text
from src.ds_savings.application.schemas import (
    MAX_GOAL_NAME_LENGTH,
    MAX_LOCK_DAYS,
    SavingListResponse,
    SavingResponse,
    TimeUntilUnlockResponse,
)
from src.ds_savings.domain.models import SavingsEntry
from src.ds_savings.domain.repository import SavingsRepositoryProtocol
from src.ds_savings.infrastructure.persistence import SavingsRepository
from src.ds_token.domain.repository import TokenLedgerProtocol
from src.ds_token.infrastructure.persistence import SqlTokenLedger

logger = logging.getLogger(__name__)


_MAX_INDEX = 2**63 - 1


def _validate_index(account: str, index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidIdentifierError("saving index", index)
    if not 0 <= index <= _MAX_INDEX:
        raise SavingNotFoundError(account, index)
    return index


class SavingsApplicationService:
    def __init__(
        self,
        repo: SavingsRepositoryProtocol | None = None,
        ledger: TokenLedgerProtocol | None = None,
        event_log: EventLogProtocol | None = None,
        custody_account: str | None = None,
        clock: Clock = utc_now,
        min_lock_days: int | None = None,
    ) -> None:
        self._repo: SavingsRepositoryProtocol = repo or SavingsRepository()
        self._ledger: TokenLedgerProtocol = ledger or SqlTokenLedger()
        self._events: EventLogProtocol = event_log or SqlEventLog()
        self._custody = custody_account or settings.SAVINGS_CUSTODY_ACCOUNT
        self._clock = clock
        self._min_lock_days = min_lock_days or settings.MIN_LOCK_DAYS

    async def create_saving(
        self,
        db: AsyncSession,
        owner: str,
        amount: int,
        asset: str,
        lock_days: int,
        goal_name: str,
    ) -> SavingResponse:
        validate_account(owner)
        validate_asset(asset)
        validate_amount(amount)
        validate_text("goal_name", goal_name, MAX_GOAL_NAME_LENGTH)
        if isinstance(lock_days, bool) or not isinstance(lock_days, int):
            raise LockPeriodTooShortError(lock_days, self._min_lock_days)
        if lock_days < self._min_lock_days:
            raise LockPeriodTooShortError(lock_days, self._min_lock_days)
        if lock_days > MAX_LOCK_DAYS:
            raise LockPeriodTooLongError(lock_days, MAX_LOCK_DAYS)

        now = self._clock()
        unlock_time = now + timedelta(seconds=lock_days * SECONDS_PER_DAY)
        async with unit_of_work(db):
            await self._ledger.transfer_from(
                db, self._custody, owner, self._custody, asset, amount
            )
            entry = await self._repo.append(
                db, owner, asset, amount, unlock_time, goal_name, now
            )
            await self._events.append(
                db,
                LedgerEvent(
                    engine=Engine.SAVINGS,
                    event_type=LedgerEventType.SAVING_CREATED,
                    entity_id=f"{owner}:{entry.index}",
                    account=owner,
                    payload={
                        "index": entry.index,
                        "asset": asset,
                        "amount": amount,
                        "unlock_time": unlock_time,
                        "goal_name": goal_name,
                    },
                ),
            )
        return SavingResponse.from_entry(entry)

    async def withdraw_saving(
        self, db: AsyncSession, owner: str, index: int
    ) -> SavingResponse:
        validate_account(owner)
        _validate_index(owner, index)
        async with unit_of_work(db):
            entry = await self._load(db, owner, index)
            now = self._clock()
            self._check_withdrawable(entry, now)
            updated = await self._repo.mark_withdrawn(db, owner, index, now)
            if updated is None:
                await self._raise_race_lost(db, owner, index, now)
            await self._ledger.transfer(
                db, self._custody, owner, updated.asset, updated.amount
            )
            await self._events.append(
                db,
                LedgerEvent(
                    engine=Engine.SAVINGS,
                    event_type=LedgerEventType.SAVING_WITHDRAWN,
                    entity_id=f"{owner}:{index}",
                    account=owner,
                    payload={
                        "index": index,
                        "asset": updated.asset,
                        "amount": updated.amount,
                    },
                ),
            )
        return SavingResponse.from_entry(updated)

    async def get_user_saving(
        self, db: AsyncSession, account: str
    ) -> SavingListResponse:
        validate_account(account)
        entries = await self._repo.list_by_account(db, account)
        return SavingListResponse(
            account=account,
            items=[SavingResponse.from_entry(e) for e in entries],
        )

    async def get_time_until_unlock(
        self, db: AsyncSession, account: str, index: int
    ) -> TimeUntilUnlockResponse:
        validate_account(account)
        _validate_index(account, index)
        entry = await self._load(db, account, index)
        return TimeUntilUnlockResponse(
            account=account,
            index=index,
            seconds=seconds_until(entry.unlock_time, self._clock()),
            unlock_time=entry.unlock_time.isoformat(),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load(
        self, db: AsyncSession, account: str, index: int
    ) -> SavingsEntry:
        entry = await self._repo.get(db, account, index)
        if entry is None:
            raise SavingNotFoundError(account, index)
        return entry

    @staticmethod
    def _check_withdrawable(entry: SavingsEntry, now: datetime) -> None:
        if entry.withdrawn:
            raise SavingAlreadyWithdrawnError(entry.index)
        if not entry.is_unlocked(now):
            raise NotYetUnlockedError(entry.index, seconds_until(entry.unlock_time, now))

    async def _raise_race_lost(
        self, db: AsyncSession, account: str, index: int, now: datetime
    ) -> NoReturn:
        current = await self._load(db, account, index)
        logger.info("Saving %s:%d withdrawn concurrently", account, index)
        self._check_withdrawable(current, now)
        # Guard failed yet the row reads as withdrawable: report as already withdrawn
        raise SavingAlreadyWithdrawnError(index)
