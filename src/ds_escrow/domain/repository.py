"""TradeRepository Protocol: interface contract for escrow persistence.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ds_escrow.domain.models import Trade


class TradeRepositoryProtocol(Protocol):
    async def create(
        self,
        db: AsyncSession,
        seller: str,
        buyer: str,
        asset: str,
        amount: int,
        description: str,
        is_native: bool,
    ) -> Trade: ...

    async def get_by_id(self, db: AsyncSession, trade_id: int) -> Trade | None: ...

    async def mark_completed(self, db: AsyncSession, trade_id: int) -> Trade | None:
        """Pending -> Completed. Returns None if the trade was not pending."""
        ...

    async def mark_cancelled(self, db: AsyncSession, trade_id: int) -> Trade | None:
        """Pending -> Cancelled. Returns None if the trade was not pending."""
        ...

    async def list_by_account(
        self,
        db: AsyncSession,
        account: str,
        role: str,
        status: str | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[Trade]: ...
