"""
asyncpg pool for the metrics store.

Only the read-side repository (adbench/services/repository.py) issues
queries; it receives connections through the ``DBSessionDep`` dependency.
The pool is created in the application lifespan and sized from Settings
(db_pool_min_size, db_pool_max_size, db_command_timeout).

    await init_db()
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await fetch_metric_rows(conn, date_from, date_to)
    await close_db()
"""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from adbench.core.config import Settings, get_settings


logger = logging.getLogger(__name__)


# Module-level singleton; None until init_db() succeeds
_pool: Optional[Pool] = None


async def init_db(settings: Optional[Settings] = None) -> Pool:
    """
    Create the pool if it does not exist yet.

    Args:
        settings: Settings to size the pool from; the cached singleton by default.

    Returns:
        The shared asyncpg pool.

    Raises:
        asyncpg.PostgresError: If the server rejects the connection.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = settings or get_settings()
    _pool = await asyncpg.create_pool(
        dsn=settings.database_url,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        command_timeout=settings.db_command_timeout,
    )
    logger.info(
        f"Metrics store pool ready (min={settings.db_pool_min_size}, "
        f"max={settings.db_pool_max_size})"
    )
    return _pool


async def get_db_pool() -> Pool:
    """Return the shared pool, creating it lazily outside the lifespan (scripts, tests)."""
    if _pool is None:
        return await init_db()
    return _pool


async def close_db() -> None:
    """Close the pool; a no-op when it was never created."""
    global _pool

    if _pool is None:
        return
    await _pool.close()
    _pool = None
    logger.info("Metrics store pool closed")
