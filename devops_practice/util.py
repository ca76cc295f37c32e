from __future__ import annotations

import time
from datetime import UTC, datetime

import psutil

_BYTES_PER_MB = 1024 * 1024


def format_iso(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    text = moment.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def utc_now_iso() -> str:
    return format_iso(datetime.now(UTC))


def process_uptime() -> float:
    """Seconds elapsed since the current process started."""
    started = psutil.Process().create_time()
    return max(0.0, time.time() - started)


def memory_snapshot() -> dict[str, object]:
    """Resident memory of this process against the physical memory of the host."""
    rss = psutil.Process().memory_info().rss
    return {
        "used": round(rss / _BYTES_PER_MB),
        "total": round(psutil.virtual_memory().total / _BYTES_PER_MB),
        "unit": "MB",
    }
