"""Session lifecycle subpackage.

Public surface
--------------
- SessionStore       — the store consumed by session middleware
- StoreOptions       — validated store configuration
- SessionRecord      — one row of the sessions table
- SessionSerializer  — JSON / YAML payload serializer
- ConnectionGuard    — probe-once backend health gate
- PruningScheduler   — background loop deleting expired sessions
"""
from __future__ import annotations

from orm_session_store.session.guard import ConnectionGuard, ConnectionState
from orm_session_store.session.options import DEFAULT_CHECK_PERIOD_MS, StoreOptions
from orm_session_store.session.pruning import PruningScheduler, PruningTaskError
from orm_session_store.session.record_id import (
    FunctionStrategy,
    RandomTokenStrategy,
    SessionIdStrategy,
    resolve_strategy,
    row_to_session,
)
from orm_session_store.session.serializer import (
    MalformedPayloadError,
    PayloadSerializer,
    SessionSerializer,
)
from orm_session_store.session.state import SessionRecord
from orm_session_store.session.store import (
    BackendOperationError,
    ConnectionUnavailableError,
    SessionStore,
    SessionStoreError,
)

__all__ = [
    "BackendOperationError",
    "ConnectionGuard",
    "ConnectionState",
    "ConnectionUnavailableError",
    "DEFAULT_CHECK_PERIOD_MS",
    "FunctionStrategy",
    "MalformedPayloadError",
    "PayloadSerializer",
    "PruningScheduler",
    "PruningTaskError",
    "RandomTokenStrategy",
    "SessionIdStrategy",
    "SessionRecord",
    "SessionSerializer",
    "SessionStore",
    "SessionStoreError",
    "StoreOptions",
    "resolve_strategy",
    "row_to_session",
]
