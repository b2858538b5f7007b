"""Pydantic schemas for the ds_vault API."""

from pydantic import BaseModel, Field

from config.settings import settings
from src.ds_common.amounts import MAX_AMOUNT, format_units


class VaultAmountRequest(BaseModel):
    """Body of both deposit and withdraw."""

    asset: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(
        ..., gt=0, le=MAX_AMOUNT, description="Amount in the asset's smallest unit"
    )


class VaultBalanceResponse(BaseModel):
    account: str
    asset: str
    amount: int
    amount_display: str

    @classmethod
    def from_amount(cls, account: str, asset: str, amount: int) -> "VaultBalanceResponse":
        return cls(
            account=account,
            asset=asset,
            amount=amount,
            amount_display=format_units(amount, settings.ASSET_DECIMALS),
        )


class VaultBalanceListResponse(BaseModel):
    account: str
    balances: list[VaultBalanceResponse]
