"""
Async PostgreSQL access.

One process-wide AsyncConnectionPool, opened by the app lifespan (or a
script) and shared by every record store. Stores only ever read, so the
helpers below cover a dict-row fetch and a single DDL execute.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

from psycopg import sql
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from migration_analytics.core.config import (
    DATABASE_URL, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE, DB_POOL_TIMEOUT
)

logger = logging.getLogger("core.db")

# Global pool instance
pool: Optional[AsyncConnectionPool] = None


async def init_db(conninfo: str = DATABASE_URL):
    global pool
    if pool is not None:
        return
    logger.info(f"Opening async pool (min={DB_POOL_MIN_SIZE}, max={DB_POOL_MAX_SIZE})")
    pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=DB_POOL_MIN_SIZE,
        max_size=DB_POOL_MAX_SIZE,
        timeout=DB_POOL_TIMEOUT,
        open=False,
    )
    await pool.open()


async def close_db():
    global pool
    if pool is None:
        return
    await pool.close()
    pool = None
    logger.info("Async pool closed.")


@asynccontextmanager
async def get_db_connection():
    if pool is None:
        raise RuntimeError("Database pool not initialized")
    async with pool.connection() as conn:
        yield conn


async def fetch_dicts(query: sql.Composable, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
    """Run a read query and return every row as a dict."""
    async with get_db_connection() as conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, params)
            return await cur.fetchall()


async def execute(statement: sql.Composable):
    async with get_db_connection() as conn:
        await conn.execute(statement)
        await conn.commit()
