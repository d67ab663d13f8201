"""Abstract base class for async session clients.

A client is the ORM-style collaborator the store talks to.  It exposes a
handful of CRUD calls over a single sessions table whose rows are shaped
like ``SessionRecord``: ``{id, sid, data, expires_at}``.

Classes
-------
- AsyncSessionClient  — abstract base for all async clients
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Mapping, Sequence

from orm_session_store.session.state import SessionRecord


class AsyncSessionClient(ABC):
    """Protocol for async CRUD access to the sessions table.

    All methods are coroutines (``async def``).  Every row-level call must be
    atomic on its own; the store does no cross-call coordination.
    """

    async def connect(self) -> None:
        """Open the underlying connection.  Optional for clients."""

    async def disconnect(self) -> None:
        """Release the underlying connection.  Optional for clients."""

    @abstractmethod
    async def find_unique(self, sid: str) -> SessionRecord | None:
        """Return the row for ``sid``, or None if there is none.

        Parameters
        ----------
        sid:
            Session identifier (the table's unique lookup column).
        """

    @abstractmethod
    async def find_many(self) -> Sequence[SessionRecord]:
        """Return every row in the table.

        Returns
        -------
        Sequence[SessionRecord]
            All rows.  Order is implementation-defined.
        """

    @abstractmethod
    async def upsert(
        self,
        sid: str,
        create: Mapping[str, Any],
        update: Mapping[str, Any],
    ) -> SessionRecord:
        """Insert ``create`` if no row exists for ``sid``, else apply ``update``.

        Parameters
        ----------
        sid:
            Row to create or update.
        create:
            Full row values (``id``, ``sid``, ``data``, ``expires_at``).
        update:
            Column values to overwrite on an existing row.

        Returns
        -------
        SessionRecord
            The row as stored after the call.
        """

    @abstractmethod
    async def update(self, sid: str, values: Mapping[str, Any]) -> bool:
        """Overwrite columns of the existing row for ``sid``.

        Returns
        -------
        bool
            True if a row was updated, False if none exists.
        """

    @abstractmethod
    async def delete_many(
        self,
        sids: Sequence[str] | None = None,
        expires_before: datetime | None = None,
    ) -> int:
        """Delete rows matching every given filter.

        Parameters
        ----------
        sids:
            Only delete rows whose ``sid`` is listed.
        expires_before:
            Only delete rows whose ``expires_at`` is at or before this time.

        With no filters every row is deleted.

        Returns
        -------
        int
            Number of rows removed.
        """

    @abstractmethod
    async def count(self) -> int:
        """Return the number of rows in the table."""


__all__ = ["AsyncSessionClient"]
