"""UTC datetime utilities."""

import math
from collections.abc import Callable
from datetime import datetime, timezone

SECONDS_PER_DAY = 86_400

# Injectable time source; engines take one so tests can pin "now"
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def seconds_until(target: datetime, now: datetime) -> int:
    """Whole seconds from `now` until `target`, rounded up, floored at 0."""
    remaining = math.ceil((target - now).total_seconds())
    return max(0, remaining)
