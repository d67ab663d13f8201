"""Unit tests for orm_session_store.session.guard.ConnectionGuard."""
from __future__ import annotations

import asyncio
import logging

import pytest

from orm_session_store.session.guard import ConnectionGuard, ConnectionState
from orm_session_store.storage.async_memory import AsyncInMemoryClient

_LOGGER = logging.getLogger("tests.guard")


class _SlowCountClient(AsyncInMemoryClient):
    async def count(self) -> int:
        await asyncio.sleep(0.01)
        return await super().count()


def _guard(client: AsyncInMemoryClient) -> ConnectionGuard:
    return ConnectionGuard(client, "session", _LOGGER)


class TestProbe:
    def test_starts_unverified(self) -> None:
        guard = _guard(AsyncInMemoryClient())
        assert guard.state is ConnectionState.UNVERIFIED
        assert guard.connected is False
        assert guard.disabled is False

    @pytest.mark.asyncio
    async def test_success_connects(self) -> None:
        client = AsyncInMemoryClient()
        guard = _guard(client)
        assert await guard.probe() is True
        assert guard.state is ConnectionState.CONNECTED
        assert client.calls["connect"] == 1
        assert client.calls["count"] == 1

    @pytest.mark.asyncio
    async def test_probes_only_once(self) -> None:
        client = AsyncInMemoryClient()
        guard = _guard(client)
        await guard.probe()
        await guard.probe()
        await guard.validate_connection()
        assert client.calls["count"] == 1

    @pytest.mark.asyncio
    async def test_failure_disables_without_raising(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        client = AsyncInMemoryClient(fail_on={"count"})
        guard = _guard(client)
        with caplog.at_level(logging.ERROR, logger="tests.guard"):
            assert await guard.probe() is False
        assert guard.state is ConnectionState.DISABLED
        assert isinstance(guard.last_error, ConnectionError)
        assert "migration" in caplog.text

    @pytest.mark.asyncio
    async def test_concurrent_probes_share_one_attempt(self) -> None:
        client = _SlowCountClient()
        guard = _guard(client)
        results = await asyncio.gather(guard.probe(), guard.probe(), guard.probe())
        assert results == [True, True, True]
        assert client.calls["connect"] == 1
        assert client.calls["count"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_probes_share_one_failure(self) -> None:
        client = _SlowCountClient(fail_on={"count"})
        guard = _guard(client)
        results = await asyncio.gather(guard.probe(), guard.probe())
        assert results == [False, False]
        assert client.calls["count"] == 1

    @pytest.mark.asyncio
    async def test_connect_failure_disables(self) -> None:
        guard = _guard(AsyncInMemoryClient(fail_on={"connect"}))
        assert await guard.probe() is False
        assert guard.disabled is True


class TestValidateConnection:
    @pytest.mark.asyncio
    async def test_probes_lazily(self) -> None:
        client = AsyncInMemoryClient()
        guard = _guard(client)
        assert await guard.validate_connection() is True
        assert client.calls["count"] == 1

    @pytest.mark.asyncio
    async def test_disabled_logs_and_returns_false(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        client = AsyncInMemoryClient(fail_on={"count"})
        guard = _guard(client)
        await guard.probe()
        calls_before = client.total_calls
        with caplog.at_level(logging.ERROR, logger="tests.guard"):
            assert await guard.validate_connection() is False
        assert "disabled" in caplog.text
        assert client.total_calls == calls_before

    @pytest.mark.asyncio
    async def test_disable_is_terminal(self) -> None:
        client = AsyncInMemoryClient()
        guard = _guard(client)
        await guard.probe()
        guard.disable()
        assert await guard.probe() is False
        assert await guard.validate_connection() is False
        assert client.calls["count"] == 1

    def test_repr_shows_state(self) -> None:
        assert "unverified" in repr(_guard(AsyncInMemoryClient()))
