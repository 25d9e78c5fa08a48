# clinic/core/clock.py
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Timezone-aware current time in UTC. All stored timestamps use this."""
    return datetime.now(timezone.utc)


def month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)
