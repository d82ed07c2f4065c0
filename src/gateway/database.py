# manages connections to the sqlite file backing the gateway
import asyncio
import os
from contextlib import asynccontextmanager
from sqlite3 import Row
from typing import AsyncIterator, List

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

_HERE = os.path.dirname(os.path.abspath(__file__))
SCHEMA_SCRIPT = os.path.join(_HERE, "schema.sql")
SEED_SCRIPT = os.path.join(_HERE, "seed-products.sql")


class Database:
    """
    Owns the sqlite file path and hands out short-lived connections.

    The schema (and optionally the seed catalog) is applied the first time a
    connection is opened against a fresh file.
    """

    def __init__(self, path: str, seed: bool = True):
        self.path = path
        self.seed = seed
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def init_scripts(self) -> List[str]:
        scripts = [SCHEMA_SCRIPT]
        if self.seed:
            scripts.append(SEED_SCRIPT)
        return scripts

    async def _apply_scripts(self, conn: aiosqlite.Connection) -> None:
        for script in self.init_scripts:
            if not os.path.exists(script) or os.path.getsize(script) == 0:
                continue
            _logger.info(f"Applying {os.path.basename(script)} to {self.path}...")
            with open(script, "r", encoding="utf-8") as f:
                await conn.executescript(f.read())
        await conn.commit()

    async def _table_exists(self, conn: aiosqlite.Connection, table_name: str) -> bool:
        cur = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?;",
            (table_name,),
        )
        row = await cur.fetchone()
        await cur.close()
        return row is not None

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection with row access by name and FK enforcement on."""
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        conn = await aiosqlite.connect(self.path)
        try:
            conn.row_factory = Row
            await conn.execute("PRAGMA foreign_keys = ON;")

            if not self._initialized:
                async with self._init_lock:
                    if not self._initialized:
                        if not await self._table_exists(conn, "products"):
                            _logger.info("Initializing database...")
                            await self._apply_scripts(conn)
                        self._initialized = True
            yield conn
        finally:
            await conn.close()
