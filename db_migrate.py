"""Manual DB migration helper.

Creates the journal table if missing and adds columns that older
databases lack. Safe to run repeatedly.
"""
from __future__ import annotations

import asyncio

from emberjournal.config import load_config, resolve_path, setup_logging
from emberjournal.db import SqliteRecordStore


async def migrate() -> None:
    cfg = load_config()
    setup_logging(cfg)
    await SqliteRecordStore(str(resolve_path(cfg["db_path"]))).init()


if __name__ == "__main__":
    asyncio.run(migrate())
