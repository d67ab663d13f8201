"""Backend reachability tracking.

The guard probes the client once, lazily, and remembers the outcome.  A
failed probe disables the store for good: every later operation is told the
backend is unusable without the client being contacted again.

Classes
-------
- ConnectionState  — UNVERIFIED / CONNECTED / DISABLED
- ConnectionGuard  — probe-once gate consulted by every store operation
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum

from orm_session_store.storage.async_base import AsyncSessionClient

_DISABLED_HINT = (
    "Could not connect to the '{model}' sessions model. "
    "Check that the migration creating it has been applied, that the "
    "database credentials are correct, and that the database is reachable. "
    "The session store is now disabled and will behave as an empty store."
)


class ConnectionState(str, Enum):
    """Lifecycle states of the backend connection."""

    UNVERIFIED = "unverified"
    CONNECTED = "connected"
    DISABLED = "disabled"


class ConnectionGuard:
    """Gate store operations on backend health.

    Parameters
    ----------
    client:
        The session client to probe.
    model_name:
        Sessions model name, used in diagnostics.
    logger:
        Where to report probe failures and disabled-store access.
    """

    def __init__(
        self,
        client: AsyncSessionClient,
        model_name: str,
        logger: logging.Logger,
    ) -> None:
        self._client = client
        self._model_name = model_name
        self._logger = logger
        self.state = ConnectionState.UNVERIFIED
        self.last_error: BaseException | None = None
        self._probe_lock = asyncio.Lock()

    @property
    def disabled(self) -> bool:
        return self.state is ConnectionState.DISABLED

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    async def probe(self) -> bool:
        """Connect and run one lightweight count query.

        Only the first call touches the backend; callers arriving while it
        is in flight wait for its outcome.  Never raises.
        """
        async with self._probe_lock:
            if self.state is not ConnectionState.UNVERIFIED:
                return self.connected
            try:
                await self._client.connect()
                await self._client.count()
            except Exception as exc:  # noqa: BLE001
                self.last_error = exc
                self._logger.error(
                    _DISABLED_HINT.format(model=self._model_name) + " Cause: %s", exc
                )
                self.disable()
                return False
            self.state = ConnectionState.CONNECTED
            self._logger.debug("Connected to sessions model %r", self._model_name)
            return True

    def disable(self) -> None:
        """Disable the store permanently."""
        self.state = ConnectionState.DISABLED

    async def validate_connection(self) -> bool:
        """Return True if the backend may be used.

        Probes on first use.  When the store is disabled, logs an error and
        returns False.
        """
        if self.state is ConnectionState.UNVERIFIED:
            await self.probe()
        if self.disabled:
            self._logger.error(
                "Session store is disabled; the %r sessions model is unavailable.",
                self._model_name,
            )
            return False
        return True

    def __repr__(self) -> str:
        return f"ConnectionGuard(model={self._model_name!r}, state={self.state.value!r})"


__all__ = ["ConnectionGuard", "ConnectionState"]
