"""Async SQLite session client backed by aiosqlite.

One long-lived connection is opened by ``connect()`` and shared by every
call until ``disconnect()``.  Expiration timestamps are stored as integer
epoch milliseconds so that range filters compare numerically.

Classes
-------
- AsyncSQLiteClient  — aiosqlite-backed async session client
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Sequence

import aiosqlite

from orm_session_store.session.state import SessionRecord
from orm_session_store.storage.async_base import AsyncSessionClient
from orm_session_store.utils.expiration import from_epoch_ms, to_epoch_ms

_DEFAULT_DB_PATH: Path = Path.home() / ".orm-session-store" / "sessions.db"

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS "{table}" (
    id         TEXT PRIMARY KEY,
    sid        TEXT NOT NULL UNIQUE,
    data       TEXT NOT NULL,
    expires_at INTEGER NOT NULL
)
"""

_CREATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS "{table}_expires_at_idx" ON "{table}" (expires_at)
"""

_UPSERT_SQL = """
INSERT INTO "{table}" (id, sid, data, expires_at)
VALUES (?, ?, ?, ?)
ON CONFLICT(sid) DO UPDATE SET
    data       = excluded.data,
    expires_at = excluded.expires_at
"""

_UPDATABLE_COLUMNS: frozenset[str] = frozenset({"data", "expires_at"})

# Stays below SQLITE_MAX_VARIABLE_NUMBER on old builds (999).
_SID_CHUNK_SIZE: int = 500


def _row_to_record(row: aiosqlite.Row) -> SessionRecord:
    return SessionRecord(
        id=str(row["id"]),
        sid=str(row["sid"]),
        data=str(row["data"]),
        expires_at=from_epoch_ms(int(row["expires_at"])),
    )


def _column_value(column: str, value: Any) -> Any:
    if column == "expires_at" and isinstance(value, datetime):
        return to_epoch_ms(value)
    return value


class AsyncSQLiteClient(AsyncSessionClient):
    """Persists session rows in a local SQLite database using aiosqlite.

    Parameters
    ----------
    db_path:
        Path to the SQLite file, or ``":memory:"``.  Defaults to
        ``~/.orm-session-store/sessions.db``.
    table:
        Name of the sessions table.  Must be a valid identifier.
    create_schema:
        When True (default) the table is created on ``connect()`` if it is
        missing.  When False the table must already exist, as it would after
        running migrations; a missing table makes the first query fail.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        table: str = "session",
        create_schema: bool = True,
    ) -> None:
        if not table.isidentifier():
            raise ValueError(f"table must be a valid identifier, got {table!r}")
        if db_path is None:
            self._db_path: str = str(_DEFAULT_DB_PATH)
        else:
            self._db_path = str(db_path)
        self._table = table
        self._create_schema = create_schema
        self._conn: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _sql(self, template: str) -> str:
        return template.format(table=self._table)

    async def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.connect()
        assert self._conn is not None
        return self._conn

    # ------------------------------------------------------------------
    # AsyncSessionClient interface
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection and, if enabled, create the schema.

        Concurrent callers share a single connection.
        """
        async with self._connect_lock:
            if self._conn is not None:
                return
            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(self._db_path)
            try:
                conn.row_factory = aiosqlite.Row
                if self._db_path != ":memory:":
                    await conn.execute("PRAGMA journal_mode=WAL")
                if self._create_schema:
                    await conn.execute(self._sql(_CREATE_TABLE_SQL))
                    await conn.execute(self._sql(_CREATE_INDEX_SQL))
                    await conn.commit()
            except BaseException:
                await conn.close()
                raise
            self._conn = conn

    async def disconnect(self) -> None:
        """Close the connection if it is open."""
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()

    async def find_unique(self, sid: str) -> SessionRecord | None:
        """Return the row for ``sid`` or None."""
        conn = await self._connection()
        async with conn.execute(
            self._sql('SELECT id, sid, data, expires_at FROM "{table}" WHERE sid = ?'),
            (sid,),
        ) as cursor:
            row = await cursor.fetchone()
        return _row_to_record(row) if row is not None else None

    async def find_many(self) -> Sequence[SessionRecord]:
        """Return all rows ordered by expiration."""
        conn = await self._connection()
        async with conn.execute(
            self._sql('SELECT id, sid, data, expires_at FROM "{table}" ORDER BY expires_at')
        ) as cursor:
            rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]

    async def upsert(
        self,
        sid: str,
        create: Mapping[str, Any],
        update: Mapping[str, Any],
    ) -> SessionRecord:
        """Insert the row for ``sid`` or overwrite its data and expiration."""
        unknown = set(update) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns {sorted(unknown)}")
        conn = await self._connection()
        row_id = str(create["id"])
        data = str(update.get("data", create["data"]))
        expires_at = _column_value(
            "expires_at", update.get("expires_at", create["expires_at"])
        )
        await conn.execute(self._sql(_UPSERT_SQL), (row_id, sid, data, expires_at))
        await conn.commit()
        stored = await self.find_unique(sid)
        assert stored is not None
        return stored

    async def update(self, sid: str, values: Mapping[str, Any]) -> bool:
        """Overwrite columns of the existing row for ``sid``."""
        unknown = set(values) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns {sorted(unknown)}")
        if not values:
            return await self.find_unique(sid) is not None
        conn = await self._connection()
        columns = sorted(values)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        params = [_column_value(column, values[column]) for column in columns]
        cursor = await conn.execute(
            self._sql(f'UPDATE "{{table}}" SET {assignments} WHERE sid = ?'),
            (*params, sid),
        )
        await conn.commit()
        return cursor.rowcount > 0

    async def delete_many(
        self,
        sids: Sequence[str] | None = None,
        expires_before: datetime | None = None,
    ) -> int:
        """Delete rows matching all given filters; return how many.

        Large ``sids`` lists are deleted in chunks within one transaction.
        """
        if sids is not None and not sids:
            return 0
        expiry_params: list[Any] = []
        expiry_clause = ""
        if expires_before is not None:
            expiry_clause = "expires_at <= ?"
            expiry_params.append(to_epoch_ms(expires_before))

        if sids is None:
            batches: list[Sequence[str] | None] = [None]
        else:
            batches = [
                sids[start : start + _SID_CHUNK_SIZE]
                for start in range(0, len(sids), _SID_CHUNK_SIZE)
            ]

        conn = await self._connection()
        removed = 0
        for batch in batches:
            clauses: list[str] = []
            params: list[Any] = []
            if batch is not None:
                clauses.append(f"sid IN ({', '.join('?' for _ in batch)})")
                params.extend(batch)
            if expiry_clause:
                clauses.append(expiry_clause)
                params.extend(expiry_params)
            where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
            cursor = await conn.execute(
                self._sql('DELETE FROM "{table}"') + where, params
            )
            removed += cursor.rowcount
        await conn.commit()
        return removed

    async def count(self) -> int:
        """Return the number of stored rows."""
        conn = await self._connection()
        async with conn.execute(self._sql('SELECT COUNT(*) FROM "{table}"')) as cursor:
            row = await cursor.fetchone()
        return int(row[0]) if row is not None else 0

    def __repr__(self) -> str:
        return f"AsyncSQLiteClient(db_path={self._db_path!r}, table={self._table!r})"


__all__ = ["AsyncSQLiteClient"]
