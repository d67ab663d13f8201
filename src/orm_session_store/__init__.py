"""orm-session-store — Server-side session persistence over an ORM client.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import orm_session_store
>>> orm_session_store.__version__
'0.1.0'
"""
from __future__ import annotations

# Store
from orm_session_store.session.store import (
    BackendOperationError,
    ConnectionUnavailableError,
    SessionStore,
    SessionStoreError,
)
from orm_session_store.session.options import DEFAULT_CHECK_PERIOD_MS, StoreOptions
from orm_session_store.session.guard import ConnectionGuard, ConnectionState
from orm_session_store.session.pruning import PruningScheduler, PruningTaskError

# Records and payloads
from orm_session_store.session.state import SessionRecord
from orm_session_store.session.serializer import (
    MalformedPayloadError,
    PayloadSerializer,
    SessionSerializer,
)
from orm_session_store.session.record_id import (
    FunctionStrategy,
    RandomTokenStrategy,
    SessionIdStrategy,
)

# Clients
from orm_session_store.storage.async_base import AsyncSessionClient
from orm_session_store.storage.async_memory import AsyncInMemoryClient
from orm_session_store.storage.async_sqlite import AsyncSQLiteClient

# Helpers
from orm_session_store.utils.expiration import create_expiration, get_ttl

__version__: str = "0.1.0"

__all__ = [
    "__version__",
    # Store
    "BackendOperationError",
    "ConnectionGuard",
    "ConnectionState",
    "ConnectionUnavailableError",
    "DEFAULT_CHECK_PERIOD_MS",
    "PruningScheduler",
    "PruningTaskError",
    "SessionStore",
    "SessionStoreError",
    "StoreOptions",
    # Records and payloads
    "FunctionStrategy",
    "MalformedPayloadError",
    "PayloadSerializer",
    "RandomTokenStrategy",
    "SessionIdStrategy",
    "SessionRecord",
    "SessionSerializer",
    # Clients
    "AsyncInMemoryClient",
    "AsyncSQLiteClient",
    "AsyncSessionClient",
    # Helpers
    "create_expiration",
    "get_ttl",
]
