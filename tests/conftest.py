"""Shared fixtures for the orm-session-store test suite."""
from __future__ import annotations

import time

import pytest


class FrozenClock:
    """Wall clock pinned to an epoch-millisecond value until advanced."""

    def __init__(self, now_ms: int) -> None:
        self.now_ms = now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms

    def set(self, ms: int) -> None:
        self.now_ms = ms

    def time_ns(self) -> int:
        return self.now_ms * 1_000_000


@pytest.fixture()
def clock(monkeypatch: pytest.MonkeyPatch) -> FrozenClock:
    """Pin ``time.time_ns`` (and so ``current_time_ms``) to a controllable value."""
    frozen = FrozenClock(1_700_000_000_000)
    monkeypatch.setattr(time, "time_ns", frozen.time_ns)
    return frozen
