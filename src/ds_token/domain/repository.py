"""Transfer primitive Protocol: the one seam through which value moves.

The engines only ever call this interface. The bundled implementation is a
simulated ledger in the same database; a chain-backed implementation can be
injected instead as long as it fails atomically.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession


class TokenLedgerProtocol(Protocol):
    async def lock_balances(self, db: AsyncSession, asset: str, *accounts: str) -> None:
        """Row-lock the accounts' balances for `asset` in account order.

        Every path that holds both a token balance row and an engine row takes
        the token rows first through this call.
        """
        ...

    async def transfer(
        self, db: AsyncSession, owner: str, recipient: str, asset: str, amount: int
    ) -> None:
        """Move `amount` from owner's own balance. Raises InsufficientFundsError."""
        ...

    async def transfer_from(
        self,
        db: AsyncSession,
        spender: str,
        owner: str,
        recipient: str,
        asset: str,
        amount: int,
    ) -> None:
        """Move `amount` using owner's allowance to spender.

        Raises InsufficientAllowanceError or InsufficientFundsError; on either,
        neither the allowance nor any balance changes.
        """
        ...

    async def approve(
        self, db: AsyncSession, owner: str, spender: str, asset: str, amount: int
    ) -> None: ...

    async def balance_of(self, db: AsyncSession, account: str, asset: str) -> int: ...

    async def allowance(
        self, db: AsyncSession, owner: str, spender: str, asset: str
    ) -> int: ...

    async def mint(
        self, db: AsyncSession, account: str, asset: str, amount: int
    ) -> int: ...
