"""SavingsRepository Protocol: per-account append-only sequence of holds."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_savings.domain.models import SavingsEntry


class SavingsRepositoryProtocol(Protocol):
    async def append(
        self,
        db: AsyncSession,
        account: str,
        asset: str,
        amount: int,
        unlock_time: datetime,
        goal_name: str,
        created_at: datetime,
    ) -> SavingsEntry:
        """Allocate the account's next index and store the entry under it."""
        ...

    async def get(
        self, db: AsyncSession, account: str, index: int
    ) -> SavingsEntry | None: ...

    async def mark_withdrawn(
        self, db: AsyncSession, account: str, index: int, now: datetime
    ) -> SavingsEntry | None:
        """Flip withdrawn only if not yet withdrawn and unlock_time <= now."""
        ...

    async def list_by_account(
        self, db: AsyncSession, account: str
    ) -> list[SavingsEntry]: ...
