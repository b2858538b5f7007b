"""Escrow domain model: pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.ds_common.enums import TradeStatus


@dataclass
class Trade:
    id: int
    seller: str
    buyer: str
    asset: str
    amount: int                      # smallest unit, > 0
    description: str
    seller_deposited: bool = True    # funds enter custody with creation
    buyer_confirmed: bool = False
    completed: bool = False
    cancelled: bool = False
    is_native: bool = False          # created via createTradeETH
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def status(self) -> TradeStatus:
        if self.completed:
            return TradeStatus.COMPLETED
        if self.cancelled:
            return TradeStatus.CANCELLED
        return TradeStatus.PENDING

    @property
    def is_final(self) -> bool:
        return self.completed or self.cancelled

    @property
    def is_cancellable(self) -> bool:
        return not (self.buyer_confirmed or self.completed or self.cancelled)
