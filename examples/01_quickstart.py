#!/usr/bin/env python3
"""Example: Quickstart — orm-session-store

Minimal working example: store a session, read it back, refresh its
expiration and destroy it, using the in-memory client.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install orm-session-store
"""
from __future__ import annotations

import asyncio

import orm_session_store
from orm_session_store import AsyncInMemoryClient, SessionStore


async def main() -> None:
    print(f"orm-session-store version: {orm_session_store.__version__}")

    # Step 1: Create a store; the first operation probes the client
    store = SessionStore(AsyncInMemoryClient(), ttl=60_000, round_ttl=1000)

    # Step 2: Write and read a session
    await store.set("sid-001", {"user": "alice", "cookie": {"max_age": 60_000}})
    print(f"Stored: {await store.get('sid-001')}")

    # Step 3: Touch refreshes the expiration, keeping the stored data
    await store.touch("sid-001", {"user": "ignored", "cookie": {"max_age": 60_000}})
    print(f"After touch: {await store.get('sid-001')}")

    # Step 4: Callback style
    def on_length(err: BaseException | None, result: int | None) -> None:
        print(f"  callback -> err={err!r} length={result}")

    await store.length(callback=on_length)

    # Step 5: Destroy and shut down
    await store.destroy("sid-001")
    print(f"After destroy: {await store.get('sid-001')}")
    await store.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
