"""Duration parsing (for timeouts) and compact duration formatting."""

from __future__ import annotations

import re
import threading
from datetime import timedelta

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # micro sign
    "μs": 1e-6,  # greek small letter mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

# Go caps durations at int64 nanoseconds; timers cap waits at TIMEOUT_MAX.
_MAX_SECONDS = min(9_223_372_036.854775807, threading.TIMEOUT_MAX)


def parse_duration(text: str) -> float:
    """Parse a duration such as "45s", "5m", "1h30m" or "1.5h" into seconds.

    Accepts the same grammar as Go's `time.ParseDuration` (which is what Argo
    users type): an optional sign followed by one or more decimal numbers each
    with a unit suffix. A bare "0" is also accepted.

    Raises:
        ValueError if the text is not a valid duration or is out of range.
    """

    raw = text.strip()
    if not raw:
        raise ValueError("invalid duration: empty string")

    sign = 1.0
    body = raw
    if body[0] in "+-":
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    if body == "0":
        return 0.0
    if not body:
        raise ValueError(f"invalid duration {raw!r}")

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _COMPONENT.match(body, pos)
        if match is None:
            if body[pos].isdigit() or body[pos] == ".":
                raise ValueError(f"missing unit in duration {raw!r}")
            raise ValueError(f"invalid duration {raw!r}")
        number, unit = match.groups()
        total += float(number) * _UNIT_SECONDS[unit]
        pos = match.end()

    if total > _MAX_SECONDS:
        raise ValueError(f"invalid duration {raw!r}: out of range")
    return sign * total


def format_duration(elapsed: timedelta) -> str:
    """Format a duration compactly: "45s", "5m30s", "2h15m45s".

    Components are truncated toward zero, never rounded, and never zero-padded.
    """

    total_seconds = int(elapsed.total_seconds())
    if elapsed < timedelta(minutes=1):
        return f"{total_seconds}s"
    if elapsed < timedelta(hours=1):
        return f"{total_seconds // 60}m{total_seconds % 60}s"
    hours = total_seconds // 3600
    minutes = (total_seconds // 60) % 60
    seconds = total_seconds % 60
    return f"{hours}h{minutes}m{seconds}s"
