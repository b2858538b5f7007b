"""Vault domain models: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.ds_common.enums import VaultMovementType


@dataclass
class VaultBalance:
    account: str
    asset: str
    amount: int = 0
    updated_at: datetime | None = None


@dataclass
class VaultMovement:
    """One journal line; amount is always positive, the type carries the sign."""

    account: str
    asset: str
    movement_type: VaultMovementType
    amount: int
    balance_after: int
    id: int | None = None
    created_at: datetime | None = None

    @property
    def signed_amount(self) -> int:
        if self.movement_type == VaultMovementType.WITHDRAW:
            return -self.amount
        return self.amount
