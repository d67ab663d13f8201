"""Session store backed by an ORM-style async client.

Provides ``SessionStore``, the object a web session middleware talks to.
Every operation is a coroutine that first consults the connection guard,
then performs one or two client calls, and resolves either to its result or
through the optional ``callback(err, result)`` observer.

A store whose backend could not be reached at probe time is disabled: it
behaves as an always-empty store and never contacts the client again.

Classes
-------
- SessionStore                — the store
- SessionStoreError           — base class for store errors
- ConnectionUnavailableError  — the backend could not be reached
- BackendOperationError       — a client call failed during an operation
"""
from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Awaitable, Mapping, Optional, Sequence, TypeVar

from orm_session_store.session.guard import ConnectionGuard, ConnectionState
from orm_session_store.session.options import DEFAULT_CHECK_PERIOD_MS, StoreOptions
from orm_session_store.session.pruning import ErrorHandler, PruningScheduler
from orm_session_store.session.record_id import resolve_strategy, row_to_session
from orm_session_store.session.serializer import MalformedPayloadError
from orm_session_store.session.state import SessionRecord
from orm_session_store.storage.async_base import AsyncSessionClient
from orm_session_store.utils.callbacks import with_callback
from orm_session_store.utils.expiration import (
    create_expiration,
    current_time_ms,
    from_epoch_ms,
    get_ttl,
)

T = TypeVar("T")


class SessionStoreError(Exception):
    """Base class for errors raised by ``SessionStore``."""


class ConnectionUnavailableError(SessionStoreError):
    """Raised by ``SessionStore.connect(raise_on_failure=True)`` when disabled."""

    def __init__(self, model_name: str, cause: BaseException | None = None) -> None:
        self.model_name = model_name
        self.cause = cause
        message = f"Sessions model {model_name!r} is unavailable."
        if cause is not None:
            message += f" Cause: {cause}"
        super().__init__(message)


class BackendOperationError(SessionStoreError):
    """Raised when the client fails during an explicit store operation."""

    def __init__(
        self, operation: str, cause: BaseException, sid: str | None = None
    ) -> None:
        self.operation = operation
        self.cause = cause
        self.sid = sid
        target = f" for session {sid!r}" if sid is not None else ""
        super().__init__(f"{operation}(){target} failed: {cause}")


class SessionStore:
    """Store, fetch, expire and prune sessions through ``client``.

    Parameters
    ----------
    client:
        The ORM-style client giving access to the sessions table.
    options:
        Store options.  Keyword arguments may be given instead and are
        validated into a ``StoreOptions``.

    Example
    -------
    ::

        store = SessionStore(AsyncSQLiteClient("sessions.db"), check_period=600_000)
        await store.set("abc", {"user": "alice", "cookie": {"max_age": 60_000}})
        await store.get("abc")
    """

    def __init__(
        self,
        client: AsyncSessionClient,
        options: StoreOptions | None = None,
        **kwargs: Any,
    ) -> None:
        if options is not None and kwargs:
            raise TypeError("Pass either options or keyword options, not both")
        self.options: StoreOptions = (
            options if options is not None else StoreOptions(**kwargs)
        )
        self._client = client
        self._logger = self.options.resolve_logger()
        self._serializer = self.options.serializer
        self._record_ids = resolve_strategy(self.options)
        self._guard = ConnectionGuard(
            client, self.options.session_model_name, self._logger
        )
        self._scheduler = PruningScheduler(
            self.prune,
            self.options.check_period or DEFAULT_CHECK_PERIOD_MS,
            self._logger,
        )
        self._is_setting: set[str] = set()
        self._is_touching: set[str] = set()
        self._interval_auto_started = False
        self._shut_down = False

    # ------------------------------------------------------------------
    # Connection state
    # ------------------------------------------------------------------

    @property
    def client(self) -> AsyncSessionClient:
        return self._client

    @property
    def scheduler(self) -> PruningScheduler:
        return self._scheduler

    @property
    def state(self) -> ConnectionState:
        return self._guard.state

    @property
    def connected(self) -> bool:
        return self._guard.connected

    @property
    def disabled(self) -> bool:
        return self._guard.disabled

    async def connect(self, raise_on_failure: bool = False) -> bool:
        """Probe the backend and start automatic pruning if configured.

        Called lazily by the first operation; call it explicitly to surface
        connection problems at startup.

        Parameters
        ----------
        raise_on_failure:
            Raise ``ConnectionUnavailableError`` instead of returning False
            when the store is (or becomes) disabled.

        Returns
        -------
        bool
            True if the backend is usable.
        """
        ok = await self._guard.probe()
        if ok and self.options.check_period and not self._interval_auto_started:
            if not self._shut_down:
                self._interval_auto_started = True
                self.start_interval()
        if not ok and raise_on_failure:
            raise ConnectionUnavailableError(
                self.options.session_model_name, self._guard.last_error
            )
        return ok

    async def _validate_connection(self) -> bool:
        if self._guard.state is ConnectionState.UNVERIFIED:
            await self.connect()
        return await self._guard.validate_connection()

    async def _backend(
        self, operation: str, call: Awaitable[T], sid: str | None = None
    ) -> T:
        try:
            return await call
        except Exception as exc:  # noqa: BLE001
            self._logger.error("%s(%s) failed: %s", operation, sid or "", exc)
            raise BackendOperationError(operation, exc, sid=sid) from exc

    def _decode(self, operation: str, record: SessionRecord) -> tuple[bool, Any]:
        try:
            data, _ = row_to_session(record, self._serializer)
        except MalformedPayloadError as exc:
            self._logger.warning("%s(%r): %s", operation, record.sid, exc)
            return False, None
        return True, data

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    @with_callback
    async def get(self, sid: str) -> Any:
        """Return the session data for ``sid``, or None.

        Missing, expired and unreadable records all resolve to None.  Expired
        records are left in place for ``prune`` to remove.
        """
        if not await self._validate_connection():
            return None
        record = await self._backend("get", self._client.find_unique(sid), sid)
        if record is None:
            return None
        if record.is_expired():
            self._logger.debug("get(%r): session expired at %s", sid, record.expires_at)
            return None
        _, data = self._decode("get", record)
        return data

    @with_callback
    async def set(self, sid: str, session: Any) -> None:
        """Write ``session`` under ``sid`` with a fresh expiration.

        Raises
        ------
        BackendOperationError
            If the client call fails.
        TypeError
            If ``session`` cannot be serialized.
        """
        if not await self._validate_connection():
            return None
        if (
            sid in self._is_setting
            and not self.options.enable_concurrent_set_invocations_for_same_session_id
        ):
            self._logger.debug("set(%r) skipped: a write is already in flight", sid)
            return None
        self._is_setting.add(sid)
        try:
            await self._write(sid, session)
        finally:
            self._is_setting.discard(sid)
        return None

    async def _write(self, sid: str, session: Any) -> None:
        ttl = get_ttl(self.options, session, sid)
        expires_at = create_expiration(ttl, self.options.round_ttl)
        payload = session

        if self.options.merge_mode == "merge" or not self.options.rolling:
            existing = await self._backend("set", self._client.find_unique(sid), sid)
            if existing is not None and not existing.is_expired():
                if not self.options.rolling:
                    expires_at = existing.expires_at
                if self.options.merge_mode == "merge" and isinstance(session, Mapping):
                    ok, stored = self._decode("set", existing)
                    if ok and isinstance(stored, Mapping):
                        payload = {**stored, **session}

        data = self._serializer.serialize(payload)
        create = {
            "id": self._record_ids.key_for(sid),
            "sid": sid,
            "data": data,
            "expires_at": expires_at,
        }
        update = {"data": data, "expires_at": expires_at}
        await self._backend("set", self._client.upsert(sid, create, update), sid)
        self._logger.debug("set(%r): expires at %s", sid, expires_at)

    @with_callback
    async def touch(self, sid: str, session: Any) -> None:
        """Refresh the expiration of ``sid`` without changing its data.

        Only the ``cookie`` entry of ``session`` is carried over to the
        stored payload.  Missing or expired sessions are left alone.
        """
        if not await self._validate_connection():
            return None
        if (
            sid in self._is_touching
            and not self.options.enable_concurrent_touch_invocations_for_same_session_id
        ):
            self._logger.debug("touch(%r) skipped: a touch is already in flight", sid)
            return None
        self._is_touching.add(sid)
        try:
            await self._refresh(sid, session)
        finally:
            self._is_touching.discard(sid)
        return None

    async def _refresh(self, sid: str, session: Any) -> None:
        existing = await self._backend("touch", self._client.find_unique(sid), sid)
        if existing is None or existing.is_expired():
            self._logger.debug("touch(%r): no live session to touch", sid)
            return
        ok, stored = self._decode("touch", existing)
        if not ok:
            return
        if (
            isinstance(stored, Mapping)
            and isinstance(session, Mapping)
            and "cookie" in session
        ):
            stored = {**stored, "cookie": session["cookie"]}

        ttl = get_ttl(self.options, session, sid)
        values = {
            "data": self._serializer.serialize(stored),
            "expires_at": create_expiration(ttl, self.options.round_ttl),
        }
        updated = await self._backend("touch", self._client.update(sid, values), sid)
        if not updated:
            self._logger.debug("touch(%r): session vanished before update", sid)

    @with_callback
    async def destroy(self, sid: str | Sequence[str]) -> None:
        """Delete the session(s) for ``sid``.  Unknown ids are ignored."""
        if not await self._validate_connection():
            return None
        sids = [sid] if isinstance(sid, str) else list(sid)
        if not sids:
            return None
        label = sids[0] if len(sids) == 1 else None
        removed = await self._backend(
            "destroy", self._client.delete_many(sids=sids), label
        )
        self._logger.debug("destroy(%s): removed %d row(s)", sids, removed)
        return None

    @with_callback
    async def all(self) -> dict[str, Any]:
        """Return ``{sid: data}`` for every live, readable session."""
        if not await self._validate_connection():
            return {}
        records = await self._backend("all", self._client.find_many())
        now_ms = current_time_ms()
        sessions: dict[str, Any] = {}
        for record in records:
            if record.is_expired(now_ms):
                continue
            ok, data = self._decode("all", record)
            if ok:
                sessions[record.sid] = data
        return sessions

    @with_callback
    async def ids(self) -> list[str]:
        """Return every session id in the backend, expired ones included."""
        if not await self._validate_connection():
            return []
        records = await self._backend("ids", self._client.find_many())
        return [record.sid for record in records]

    @with_callback
    async def length(self) -> int:
        """Return the number of rows in the backend."""
        if not await self._validate_connection():
            return 0
        return await self._backend("length", self._client.count())

    @with_callback
    async def clear(self) -> None:
        """Delete every session."""
        if not await self._validate_connection():
            return None
        removed = await self._backend("clear", self._client.delete_many())
        self._logger.debug("clear(): removed %d row(s)", removed)
        return None

    async def prune(self) -> int:
        """Delete every session whose expiration is at or before now.

        Returns
        -------
        int
            Number of sessions removed.
        """
        if not await self._validate_connection():
            return 0
        now = from_epoch_ms(current_time_ms())
        removed = await self._backend(
            "prune", self._client.delete_many(expires_before=now)
        )
        if removed:
            self._logger.info("Pruned %d expired session(s)", removed)
        return removed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def interval_active(self) -> bool:
        return self._scheduler.active

    def start_interval(self, on_error: Optional[ErrorHandler] = None) -> None:
        """Start pruning expired sessions every ``check_period`` ms.

        Uses ``DEFAULT_CHECK_PERIOD_MS`` when no check period is configured.
        Does nothing if an interval is already running.
        """
        self._scheduler.start(on_error)

    def stop_interval(self) -> None:
        """Stop automatic pruning."""
        self._scheduler.stop()

    async def shutdown(self) -> None:
        """Stop pruning and disconnect the client.

        A prune in progress is cancelled and awaited before the client is
        disconnected.  The store should be discarded afterwards.
        """
        self._shut_down = True
        task = self._scheduler.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._client.disconnect()

    def __repr__(self) -> str:
        return (
            f"SessionStore(model={self.options.session_model_name!r}, "
            f"state={self.state.value!r})"
        )


__all__ = [
    "BackendOperationError",
    "ConnectionUnavailableError",
    "SessionStore",
    "SessionStoreError",
]
