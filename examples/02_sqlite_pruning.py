#!/usr/bin/env python3
"""Example: SQLite client with automatic pruning

Stores sessions in a temporary SQLite database, lets one expire and
shows the background interval deleting it.

Usage:
    python examples/02_sqlite_pruning.py

Requirements:
    pip install orm-session-store
"""
from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path

from orm_session_store import AsyncSQLiteClient, SessionStore


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmp:
        client = AsyncSQLiteClient(db_path=Path(tmp) / "sessions.db")
        store = SessionStore(client, check_period=200)
        await store.connect(raise_on_failure=True)

        await store.set("short", {"cookie": {"max_age": 100}})
        await store.set("long", {"cookie": {"max_age": 60_000}})
        print(f"Sessions before pruning: {await store.length()}")

        await asyncio.sleep(0.5)
        print(f"Sessions after pruning:  {await store.length()}")
        print(f"Remaining ids: {await store.ids()}")

        await store.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
