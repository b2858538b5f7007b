"""Pydantic schemas for the ds_escrow API."""

from pydantic import BaseModel, Field

from config.settings import settings
from src.ds_common.amounts import MAX_AMOUNT, format_units
from src.ds_escrow.domain.models import Trade

MAX_DESCRIPTION_LENGTH = 500

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateTradeRequest(BaseModel):
    buyer: str = Field(..., min_length=1, max_length=64)
    asset: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(
        ..., gt=0, le=MAX_AMOUNT, description="Amount in the asset's smallest unit"
    )
    description: str = Field("", max_length=MAX_DESCRIPTION_LENGTH)


class CreateNativeTradeRequest(BaseModel):
    """createTradeETH: the value is attached to the call, no allowance needed."""

    buyer: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(
        ..., gt=0, le=MAX_AMOUNT, description="Native amount in its smallest unit"
    )
    description: str = Field("", max_length=MAX_DESCRIPTION_LENGTH)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TradeResponse(BaseModel):
    id: int
    seller: str
    buyer: str
    asset: str
    amount: int
    amount_display: str
    description: str
    seller_deposited: bool
    buyer_confirmed: bool
    completed: bool
    cancelled: bool
    is_native: bool
    status: str
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_trade(cls, trade: Trade) -> "TradeResponse":
        return cls(
            id=trade.id,
            seller=trade.seller,
            buyer=trade.buyer,
            asset=trade.asset,
            amount=trade.amount,
            amount_display=format_units(trade.amount, settings.ASSET_DECIMALS),
            description=trade.description,
            seller_deposited=trade.seller_deposited,
            buyer_confirmed=trade.buyer_confirmed,
            completed=trade.completed,
            cancelled=trade.cancelled,
            is_native=trade.is_native,
            status=trade.status.value,
            created_at=trade.created_at.isoformat() if trade.created_at else None,
            updated_at=trade.updated_at.isoformat() if trade.updated_at else None,
        )


class TradeListResponse(BaseModel):
    items: list[TradeResponse]
    next_cursor: str | None
    has_more: bool
