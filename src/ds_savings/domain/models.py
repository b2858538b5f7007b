"""Savings domain model: pure dataclass, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class SavingsEntry:
    account: str
    index: int                   # 0-based position in the account's sequence, stable
    asset: str
    amount: int                  # smallest unit, released in full exactly once
    unlock_time: datetime        # created_at + lock_days * 86400s
    goal_name: str
    withdrawn: bool = False
    created_at: datetime | None = None
    withdrawn_at: datetime | None = None

    def is_unlocked(self, now: datetime) -> bool:
        return now >= self.unlock_time
