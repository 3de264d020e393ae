"""Process-wide UTC enforcement.

Imported for its side effect by the application factory and CLI entry points so
that signature freshness windows, rate-limit windows and row timestamps are all
evaluated in UTC regardless of the host configuration.
"""

import os
from datetime import datetime, timezone

os.environ["TZ"] = "UTC"


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp used for all persisted datetime columns."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize ``value`` to aware UTC. Naive input is taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds (wallet message timestamps)."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)
