"""Small helpers shared across the store.

Public surface
--------------
- create_expiration  — compute an expiration timestamp from a shelf life
- get_ttl            — resolve the time-to-live for a session write
- with_callback      — attach the optional ``callback(err, result)`` observer
"""
from __future__ import annotations

from orm_session_store.utils.callbacks import with_callback
from orm_session_store.utils.expiration import (
    ONE_DAY_MS,
    create_expiration,
    current_time_ms,
    get_ttl,
)

__all__ = [
    "ONE_DAY_MS",
    "create_expiration",
    "current_time_ms",
    "get_ttl",
    "with_callback",
]
