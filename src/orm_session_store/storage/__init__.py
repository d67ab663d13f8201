"""Storage client subpackage.

All clients implement the ``AsyncSessionClient`` ABC.

Public surface
--------------
- AsyncSessionClient   — abstract base class
- AsyncInMemoryClient  — dict-backed client (useful for testing)
- AsyncSQLiteClient    — aiosqlite-backed client
"""
from __future__ import annotations

from orm_session_store.storage.async_base import AsyncSessionClient
from orm_session_store.storage.async_memory import AsyncInMemoryClient
from orm_session_store.storage.async_sqlite import AsyncSQLiteClient

__all__ = [
    "AsyncInMemoryClient",
    "AsyncSQLiteClient",
    "AsyncSessionClient",
]
