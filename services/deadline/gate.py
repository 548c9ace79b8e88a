"""
Deadline gate: pure open/closed arithmetic over epoch-millisecond instants.
Nothing here touches storage; callers pass `now` and the configured deadline.
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timedelta, timezone
from typing import Any

DAY_MS = 24 * 60 * 60 * 1000
DEADLINE_KEY = "application_deadline"

# April 15, 2026 23:59:59 US Eastern (UTC-5)
DEFAULT_DEADLINE_MS = int(
    datetime(2026, 4, 15, 23, 59, 59, tzinfo=timezone(timedelta(hours=-5))).timestamp() * 1000
)


def now_ms() -> int:
    return int(time.time() * 1000)


def is_past(now: int, deadline: int) -> bool:
    return now > deadline


def remaining_days(now: int, deadline: int) -> int:
    """Whole days left, rounded up; zero once the deadline is reached."""
    return max(0, math.ceil((deadline - now) / DAY_MS))


def resolve_deadline(raw: Any) -> int:
    """Stored value is a string-encoded epoch-ms integer; anything unusable falls back."""
    if raw is None:
        return DEFAULT_DEADLINE_MS
    try:
        return int(str(raw).strip())
    except ValueError:
        return DEFAULT_DEADLINE_MS


def deadline_status(now: int, deadline: int) -> dict[str, Any]:
    return {
        "deadline": deadline,
        "is_past": is_past(now, deadline),
        "remaining_days": remaining_days(now, deadline),
    }
