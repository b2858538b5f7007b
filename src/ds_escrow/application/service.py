"""EscrowApplicationService: the two-party conditional transfer engine.

State machine (terminal states never change again):

    PENDING --confirm_trade(by buyer)--> COMPLETED
    PENDING --cancel_trade(by seller)--> CANCELLED

Every mutating call runs in one unit of work: the token movement, the trade
row change and the audit event commit together or not at all.
"""

import logging
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ds_common.amounts import validate_amount
from src.ds_common.database import unit_of_work
from src.ds_common.enums import Engine, LedgerEventType, TradeRole, TradeStatus
from src.ds_common.errors import (
    InvalidIdentifierError,
    NotTradeBuyerError,
    NotTradeSellerError,
    SelfTradeError,
    TradeAlreadyFinalizedError,
    TradeNotFoundError,
)
from src.ds_common.events import EventLogProtocol, LedgerEvent, SqlEventLog
from src.ds_common.identifiers import (
    NATIVE_ASSET,
    validate_account,
    validate_asset,
    validate_text,
)
from src.ds_common.pagination import cursor_decode, cursor_encode
from src.ds_escrow.application.schemas import (
    MAX_DESCRIPTION_LENGTH,
    TradeListResponse,
    TradeResponse,
)
from src.ds_escrow.domain.models import Trade
from src.ds_escrow.domain.repository import TradeRepositoryProtocol
from src.ds_escrow.infrastructure.persistence import TradeRepository
from src.ds_token.domain.repository import TokenLedgerProtocol
from src.ds_token.infrastructure.persistence import SqlTokenLedger

logger = logging.getLogger(__name__)

_MAX_TRADE_ID = 2**63 - 1  # BIGSERIAL upper bound


def _validate_trade_id(trade_id: int) -> int:
    if isinstance(trade_id, bool) or not isinstance(trade_id, int):
        raise InvalidIdentifierError("trade", trade_id)
    if not 0 <= trade_id <= _MAX_TRADE_ID:
        raise InvalidIdentifierError("trade", trade_id)
    return trade_id


class EscrowApplicationService:
    def __init__(
        self,
        repo: TradeRepositoryProtocol | None = None,
        ledger: TokenLedgerProtocol | None = None,
        event_log: EventLogProtocol | None = None,
        custody_account: str | None = None,
    ) -> None:
        self._repo: TradeRepositoryProtocol = repo or TradeRepository()
        self._ledger: TokenLedgerProtocol = ledger or SqlTokenLedger()
        self._events: EventLogProtocol = event_log or SqlEventLog()
        self._custody = custody_account or settings.ESCROW_CUSTODY_ACCOUNT

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_trade(
        self,
        db: AsyncSession,
        seller: str,
        buyer: str,
        asset: str,
        amount: int,
        description: str,
    ) -> TradeResponse:
        """createTrade: pull `amount` from seller's allowance into custody."""
        self._validate_new_trade(seller, buyer, asset, amount, description)
        async with unit_of_work(db):
            await self._ledger.transfer_from(
                db, self._custody, seller, self._custody, asset, amount
            )
            trade = await self._repo.create(
                db, seller, buyer, asset, amount, description, is_native=False
            )
            await self._emit(db, LedgerEventType.TRADE_CREATED, trade, seller)
        return TradeResponse.from_trade(trade)

    async def create_trade_native(
        self,
        db: AsyncSession,
        seller: str,
        buyer: str,
        amount: int,
        description: str,
    ) -> TradeResponse:
        """createTradeETH: the native value travels with the call itself."""
        self._validate_new_trade(seller, buyer, NATIVE_ASSET, amount, description)
        async with unit_of_work(db):
            await self._ledger.transfer(db, seller, self._custody, NATIVE_ASSET, amount)
            trade = await self._repo.create(
                db, seller, buyer, NATIVE_ASSET, amount, description, is_native=True
            )
            await self._emit(db, LedgerEventType.TRADE_CREATED, trade, seller)
        return TradeResponse.from_trade(trade)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def confirm_trade(
        self, db: AsyncSession, caller: str, trade_id: int
    ) -> TradeResponse:
        """confirmTrade: buyer releases the escrowed amount to themselves."""
        _validate_trade_id(trade_id)
        async with unit_of_work(db):
            trade = await self._load(db, trade_id)
            if caller != trade.buyer:
                raise NotTradeBuyerError(trade_id)
            if trade.is_final:
                raise TradeAlreadyFinalizedError(trade_id, trade.status.value)
            updated = await self._repo.mark_completed(db, trade_id)
            if updated is None:
                await self._raise_race_lost(db, trade_id)
            await self._ledger.transfer(
                db, self._custody, trade.buyer, trade.asset, trade.amount
            )
            await self._emit(db, LedgerEventType.TRADE_COMPLETED, updated, caller)
        return TradeResponse.from_trade(updated)

    async def cancel_trade(
        self, db: AsyncSession, caller: str, trade_id: int
    ) -> TradeResponse:
        """cancelTrade: seller takes the escrowed amount back before confirmation."""
        _validate_trade_id(trade_id)
        async with unit_of_work(db):
            trade = await self._load(db, trade_id)
            if caller != trade.seller:
                raise NotTradeSellerError(trade_id)
            if not trade.is_cancellable:
                raise TradeAlreadyFinalizedError(trade_id, trade.status.value)
            updated = await self._repo.mark_cancelled(db, trade_id)
            if updated is None:
                await self._raise_race_lost(db, trade_id)
            await self._ledger.transfer(
                db, self._custody, trade.seller, trade.asset, trade.amount
            )
            await self._emit(db, LedgerEventType.TRADE_CANCELLED, updated, caller)
        return TradeResponse.from_trade(updated)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_trade(self, db: AsyncSession, trade_id: int) -> TradeResponse:
        _validate_trade_id(trade_id)
        return TradeResponse.from_trade(await self._load(db, trade_id))

    async def list_trades(
        self,
        db: AsyncSession,
        account: str,
        role: TradeRole,
        status: TradeStatus | None,
        cursor: str | None,
        limit: int,
    ) -> TradeListResponse:
        validate_account(account)
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        trades = await self._repo.list_by_account(
            db,
            account,
            role.value,
            status.value if status else None,
            cursor_id,
            limit + 1,
        )
        has_more = len(trades) > limit
        page = trades[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return TradeListResponse(
            items=[TradeResponse.from_trade(t) for t in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate_new_trade(
        self, seller: str, buyer: str, asset: str, amount: int, description: str
    ) -> None:
        validate_account(seller)
        validate_account(buyer)
        validate_asset(asset)
        validate_amount(amount)
        validate_text("description", description, MAX_DESCRIPTION_LENGTH)
        if buyer == seller:
            raise SelfTradeError()

    async def _load(self, db: AsyncSession, trade_id: int) -> Trade:
        trade = await self._repo.get_by_id(db, trade_id)
        if trade is None:
            raise TradeNotFoundError(trade_id)
        return trade

    async def _raise_race_lost(self, db: AsyncSession, trade_id: int) -> NoReturn:
        """The guarded UPDATE matched nothing: another call finalized the trade first."""
        current = await self._load(db, trade_id)
        logger.info(
            "Trade %d finalized concurrently, now %s", trade_id, current.status.value
        )
        raise TradeAlreadyFinalizedError(trade_id, current.status.value)

    async def _emit(
        self,
        db: AsyncSession,
        event_type: LedgerEventType,
        trade: Trade,
        caller: str,
    ) -> None:
        await self._events.append(
            db,
            LedgerEvent(
                engine=Engine.ESCROW,
                event_type=event_type,
                entity_id=str(trade.id),
                account=caller,
                payload={
                    "trade_id": trade.id,
                    "seller": trade.seller,
                    "buyer": trade.buyer,
                    "asset": trade.asset,
                    "amount": trade.amount,
                    "is_native": trade.is_native,
                    "status": trade.status.value,
                },
            ),
        )
