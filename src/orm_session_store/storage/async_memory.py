"""Async in-memory session client.

Stores rows in a plain Python dict guarded by ``asyncio.Lock``.
All data is lost when the process exits.  This client is primarily
useful for tests and local prototyping.

Classes
-------
- AsyncInMemoryClient  — dict-backed ephemeral async client
"""

from __future__ import annotations

import asyncio
from collections import Counter
from datetime import datetime
from typing import Any, Iterable, Mapping, Sequence

from orm_session_store.session.state import SessionRecord
from orm_session_store.storage.async_base import AsyncSessionClient
from orm_session_store.utils.expiration import to_epoch_ms


class AsyncInMemoryClient(AsyncSessionClient):
    """Ephemeral async in-process client backed by a Python dict.

    An ``asyncio.Lock`` guards all mutations so that concurrent coroutines
    do not race on the internal dict.

    Parameters
    ----------
    initial_rows:
        Optional rows to pre-populate the table with.
    fail_on:
        Names of methods that should raise ``ConnectionError`` when called,
        for simulating an unavailable database.

    Attributes
    ----------
    calls:
        Number of times each client method has been invoked.
    """

    def __init__(
        self,
        initial_rows: Iterable[SessionRecord] | None = None,
        fail_on: Iterable[str] | None = None,
    ) -> None:
        self._rows: dict[str, SessionRecord] = {
            row.sid: row for row in (initial_rows or ())
        }
        self._lock: asyncio.Lock = asyncio.Lock()
        self.fail_on: set[str] = set(fail_on or ())
        self.calls: Counter[str] = Counter()
        self.connected = False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record(self, method: str) -> None:
        self.calls[method] += 1
        if method in self.fail_on:
            raise ConnectionError(f"AsyncInMemoryClient.{method} failed (simulated).")

    # ------------------------------------------------------------------
    # AsyncSessionClient interface
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        self._record("connect")
        self.connected = True

    async def disconnect(self) -> None:
        self._record("disconnect")
        self.connected = False

    async def find_unique(self, sid: str) -> SessionRecord | None:
        """Return the row for ``sid`` or None."""
        self._record("find_unique")
        async with self._lock:
            return self._rows.get(sid)

    async def find_many(self) -> Sequence[SessionRecord]:
        """Return all rows in insertion order."""
        self._record("find_many")
        async with self._lock:
            return list(self._rows.values())

    async def upsert(
        self,
        sid: str,
        create: Mapping[str, Any],
        update: Mapping[str, Any],
    ) -> SessionRecord:
        """Create the row for ``sid`` or overwrite ``update`` columns."""
        self._record("upsert")
        async with self._lock:
            existing = self._rows.get(sid)
            if existing is None:
                row = SessionRecord.model_validate(dict(create))
            else:
                row = existing.model_copy(update=dict(update))
            self._rows[sid] = row
            return row

    async def update(self, sid: str, values: Mapping[str, Any]) -> bool:
        """Overwrite columns of an existing row; False if absent."""
        self._record("update")
        async with self._lock:
            existing = self._rows.get(sid)
            if existing is None:
                return False
            self._rows[sid] = existing.model_copy(update=dict(values))
            return True

    async def delete_many(
        self,
        sids: Sequence[str] | None = None,
        expires_before: datetime | None = None,
    ) -> int:
        """Delete rows matching all given filters; return how many."""
        self._record("delete_many")
        wanted = set(sids) if sids is not None else None
        threshold = to_epoch_ms(expires_before) if expires_before is not None else None
        async with self._lock:
            doomed = [
                sid
                for sid, row in self._rows.items()
                if (wanted is None or sid in wanted)
                and (threshold is None or to_epoch_ms(row.expires_at) <= threshold)
            ]
            for sid in doomed:
                del self._rows[sid]
            return len(doomed)

    async def count(self) -> int:
        """Return the number of stored rows."""
        self._record("count")
        async with self._lock:
            return len(self._rows)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    @property
    def total_calls(self) -> int:
        """Total number of client calls made so far."""
        return sum(self.calls.values())

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"AsyncInMemoryClient(rows={len(self._rows)})"


__all__ = ["AsyncInMemoryClient"]
