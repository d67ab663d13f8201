"""Expiration timestamp helpers.

All wall-clock reads go through ``current_time_ms`` so that the whole
package agrees on a single integer-millisecond notion of "now".

Functions
---------
- current_time_ms    — epoch milliseconds as an int
- from_epoch_ms      — epoch milliseconds to an aware UTC datetime
- to_epoch_ms        — aware datetime to epoch milliseconds
- create_expiration  — now + shelf life, optionally floored
- get_ttl            — time-to-live resolution for a session write
"""
from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from orm_session_store.session.options import StoreOptions

ONE_DAY_MS: int = 24 * 60 * 60 * 1000

_ALLOWED_ROUNDING: frozenset[int] = frozenset({10, 100, 1000})


def current_time_ms() -> int:
    """Return the current wall-clock time in whole epoch milliseconds."""
    return time.time_ns() // 1_000_000


def from_epoch_ms(ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds.

    Naive datetimes are interpreted as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return round(value.timestamp() * 1000)


def create_expiration(shelf_life_ms: int | float, rounding: int | None = None) -> datetime:
    """Return a UTC datetime ``shelf_life_ms`` milliseconds in the future.

    Parameters
    ----------
    shelf_life_ms:
        Milliseconds until expiration.  Negative values produce a timestamp
        in the past, which readers treat as already expired.
    rounding:
        Optional granularity (10, 100 or 1000 ms).  The result is floored
        to a multiple of it, which keeps timestamps predictable in tests.

    Returns
    -------
    datetime
        Aware UTC datetime.

    Raises
    ------
    ValueError
        If ``rounding`` is not one of the supported granularities.
    """
    if rounding is not None and rounding not in _ALLOWED_ROUNDING:
        raise ValueError(
            f"rounding must be one of {sorted(_ALLOWED_ROUNDING)}, got {rounding!r}"
        )
    expires_ms = current_time_ms() + int(shelf_life_ms)
    if rounding:
        expires_ms -= expires_ms % rounding
    return from_epoch_ms(expires_ms)


def get_ttl(options: StoreOptions, session: Any, sid: str) -> int:
    """Resolve the time-to-live (ms) to apply when writing ``session``.

    Resolution order: a fixed ``options.ttl``; a callable ``options.ttl``
    invoked as ``ttl(options, session, sid)``; the session cookie's
    ``max_age``; one day.
    """
    ttl = options.ttl
    if callable(ttl):
        return int(ttl(options, session, sid))
    if ttl is not None:
        return int(ttl)

    cookie = session.get("cookie") if isinstance(session, Mapping) else None
    max_age = cookie.get("max_age") if isinstance(cookie, Mapping) else None
    if isinstance(max_age, (int, float)) and not isinstance(max_age, bool):
        return math.floor(max_age)
    return ONE_DAY_MS


__all__ = [
    "ONE_DAY_MS",
    "create_expiration",
    "current_time_ms",
    "from_epoch_ms",
    "get_ttl",
    "to_epoch_ms",
]
