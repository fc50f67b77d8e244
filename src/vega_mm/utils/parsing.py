"""Fallible numeric parsing and timestamp helpers for wire-sourced values"""

import math
import time
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import TransientDataError

NANOS_PER_SECOND = 1_000_000_000
ONE_MINUTE_NS = 60 * NANOS_PER_SECOND


def parse_float(value: Any) -> Optional[float]:
    """Parse a wire value into a finite float, None when it is not numeric"""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def parse_int(value: Any) -> Optional[int]:
    """Parse a wire value into an int, None when it is not an integer"""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def require_float(value: Any, field: str) -> float:
    parsed = parse_float(value)
    if parsed is None:
        raise TransientDataError(f"field '{field}' is not numeric: {value!r}")
    return parsed


def require_int(value: Any, field: str) -> int:
    parsed = parse_int(value)
    if parsed is None:
        raise TransientDataError(f"field '{field}' is not an integer: {value!r}")
    return parsed


def now_ns() -> int:
    """Current wall clock time in nanoseconds since the unix epoch"""
    return time.time_ns()


def nanos_to_datetime(ts: int) -> datetime:
    """Convert nanoseconds since the unix epoch to a local datetime"""
    seconds, nanos = divmod(int(ts), NANOS_PER_SECOND)
    utc = datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=nanos // 1000)
    return utc.astimezone()
