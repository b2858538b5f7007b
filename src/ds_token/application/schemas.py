"""Pydantic schemas for the ds_token API."""

from pydantic import BaseModel, Field

from config.settings import settings
from src.ds_common.amounts import MAX_AMOUNT, format_units


class ApproveRequest(BaseModel):
    spender: str = Field(..., min_length=1, max_length=64)
    asset: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(..., ge=0, le=MAX_AMOUNT, description="0 revokes the allowance")


class FaucetRequest(BaseModel):
    asset: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(..., gt=0, le=MAX_AMOUNT)


class BalanceResponse(BaseModel):
    account: str
    asset: str
    amount: int
    amount_display: str

    @classmethod
    def from_amount(cls, account: str, asset: str, amount: int) -> "BalanceResponse":
        return cls(
            account=account,
            asset=asset,
            amount=amount,
            amount_display=format_units(amount, settings.ASSET_DECIMALS),
        )


class AllowanceResponse(BaseModel):
    owner: str
    spender: str
    asset: str
    amount: int
