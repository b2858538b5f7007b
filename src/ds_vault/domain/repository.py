"""VaultRepository Protocol."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_vault.domain.models import VaultBalance, VaultMovement


class VaultRepositoryProtocol(Protocol):
    async def credit(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> int:
        """Upsert balance += amount; return the new balance."""
        ...

    async def debit(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> int | None:
        """balance -= amount only if balance >= amount; None when it was not."""
        ...

    async def get_balance(self, db: AsyncSession, account: str, asset: str) -> int: ...

    async def list_balances(
        self, db: AsyncSession, account: str
    ) -> list[VaultBalance]: ...

    async def record_movement(
        self, db: AsyncSession, movement: VaultMovement
    ) -> None: ...
