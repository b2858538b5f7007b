"""Pydantic schemas for the ds_savings API."""

from pydantic import BaseModel, Field

from config.settings import settings
from src.ds_common.amounts import MAX_AMOUNT, format_units
from src.ds_savings.domain.models import SavingsEntry

MAX_GOAL_NAME_LENGTH = 100
MAX_LOCK_DAYS = 36_500


class CreateSavingRequest(BaseModel):
    asset: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(
        ..., gt=0, le=MAX_AMOUNT, description="Amount in the asset's smallest unit"
    )
    lock_days: int = Field(..., le=MAX_LOCK_DAYS, description="Whole days, at least MIN_LOCK_DAYS")
    goal_name: str = Field("", max_length=MAX_GOAL_NAME_LENGTH)


class SavingResponse(BaseModel):
    account: str
    index: int
    asset: str
    amount: int
    amount_display: str
    unlock_time: str
    goal_name: str
    withdrawn: bool
    created_at: str | None
    withdrawn_at: str | None

    @classmethod
    def from_entry(cls, entry: SavingsEntry) -> "SavingResponse":
        return cls(
            account=entry.account,
            index=entry.index,
            asset=entry.asset,
            amount=entry.amount,
            amount_display=format_units(entry.amount, settings.ASSET_DECIMALS),
            unlock_time=entry.unlock_time.isoformat(),
            goal_name=entry.goal_name,
            withdrawn=entry.withdrawn,
            created_at=entry.created_at.isoformat() if entry.created_at else None,
            withdrawn_at=entry.withdrawn_at.isoformat() if entry.withdrawn_at else None,
        )


class SavingListResponse(BaseModel):
    account: str
    items: list[SavingResponse]


class TimeUntilUnlockResponse(BaseModel):
    account: str
    index: int
    seconds: int
    unlock_time: str
