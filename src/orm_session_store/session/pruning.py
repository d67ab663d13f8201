"""Background pruning of expired sessions.

Classes
-------
- PruningTaskError  — wraps a failure raised by a scheduled prune
- PruningScheduler  — cancelable fixed-delay asyncio loop around ``prune()``
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

ErrorHandler = Callable[["PruningTaskError"], None]


class PruningTaskError(Exception):
    """Raised (and routed to the error handler) when a scheduled prune fails."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Scheduled prune failed: {cause}")


class PruningScheduler:
    """Run ``prune`` every ``period_ms`` milliseconds on its own task.

    A failing prune never stops the loop and never propagates to the host.

    Parameters
    ----------
    prune:
        Coroutine function deleting expired sessions.
    period_ms:
        Delay between the end of one run and the start of the next.
    logger:
        Where scheduled prune failures are reported.
    """

    def __init__(
        self,
        prune: Callable[[], Awaitable[Any]],
        period_ms: int,
        logger: logging.Logger,
    ) -> None:
        if period_ms <= 0:
            raise ValueError(f"period_ms must be positive, got {period_ms!r}")
        self._prune = prune
        self.period_ms = period_ms
        self._logger = logger
        self._task: Optional[asyncio.Task[None]] = None
        self._on_error: Optional[ErrorHandler] = None
        self.runs = 0

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, on_error: Optional[ErrorHandler] = None) -> None:
        """Start the loop unless it is already running.

        Must be called while an event loop is running.
        """
        if self.active:
            return
        self._on_error = on_error
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="orm-session-store-prune"
        )
        self._logger.debug("Started pruning every %d ms", self.period_ms)

    def stop(self) -> Optional[asyncio.Task[None]]:
        """Cancel the loop.  No-op when it is not running.

        Returns the cancelled task so callers can await its completion, or
        None when no loop was running.
        """
        if self._task is None:
            return None
        task, self._task = self._task, None
        task.cancel()
        self._logger.debug("Stopped pruning")
        return task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.period_ms / 1000)
            await self._run_once()

    async def _run_once(self) -> None:
        self.runs += 1
        try:
            await self._prune()
        except Exception as exc:  # noqa: BLE001
            error = PruningTaskError(exc)
            error.__cause__ = exc
            self._report(error)

    def _report(self, error: PruningTaskError) -> None:
        if self._on_error is None:
            self._logger.error("%s", error, exc_info=error.cause)
            return
        try:
            self._on_error(error)
        except Exception:  # noqa: BLE001
            self._logger.exception("Pruning error handler raised")

    def __repr__(self) -> str:
        return f"PruningScheduler(period_ms={self.period_ms}, active={self.active})"


__all__ = ["ErrorHandler", "PruningScheduler", "PruningTaskError"]
