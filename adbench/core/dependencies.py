"""
Request-scoped dependencies for the routers.

Each piece can be replaced in tests through ``app.dependency_overrides``.

Provided:
- get_db_session: one pooled asyncpg connection per request
- get_optional_db_session: same, but None when the metrics store is unreachable
- get_settings_dependency: the cached Settings
- get_exchange_rates: Latest ExchangeRateSnapshot for the request
- get_exchange_rates_or_fallback: same, static table when there is no connection
- SettingsDep / DBSessionDep / RatesDep: Annotated aliases for endpoints
- OptionalDBSessionDep / FallbackRatesDep: aliases for the fallback-capable routes

Usage:
    @router.get("/summary")
    async def get_summary(
        db: DBSessionDep,
        settings: SettingsDep,
        rates: RatesDep,
    ) -> KpiSummaryResponse:
        rows = await fetch_metric_rows(db, date_from, date_to)
        ...

    # In tests
    app.dependency_overrides[get_db_session] = lambda: mock_connection
"""

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Annotated, AsyncGenerator, Optional

import asyncpg
from asyncpg import Connection
from fastapi import Depends

from adbench.core.config import Settings, get_settings
from adbench.core.database import get_db_pool
from adbench.services.currency import ExchangeRateSnapshot
from adbench.services.repository import fallback_snapshot, fetch_exchange_rates


logger = logging.getLogger(__name__)

# Errors raised while creating the pool or acquiring a connection
STORE_UNAVAILABLE_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    asyncio.TimeoutError,
)


# =============================================================================
# Database Session Dependency
# =============================================================================

async def get_db_session() -> AsyncGenerator[Connection, None]:
    """
    Yield an async database connection from the pool.

    The connection is released back to the pool when the endpoint completes,
    whether or not it raised.

    Yields:
        asyncpg.Connection: An active database connection from the pool.

    Raises:
        asyncpg.PostgresError: If connection acquisition fails.
    """
    pool = await get_db_pool()
    async with pool.acquire() as connection:
        yield connection


async def get_optional_db_session() -> AsyncGenerator[Optional[Connection], None]:
    """
    Yield a pooled connection, or None when the pool cannot be created or a
    connection cannot be acquired.

    Used by the advisory benchmark routes, which answer an unreachable store
    with their fallback dataset. Errors raised by the endpoint itself are
    not caught here.
    """
    async with AsyncExitStack() as stack:
        try:
            pool = await get_db_pool()
            connection = await stack.enter_async_context(pool.acquire())
        except STORE_UNAVAILABLE_ERRORS as e:
            logger.warning(f"Metrics store unavailable: {e}")
            connection = None
        yield connection


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

DBSessionDep = Annotated[Connection, Depends(get_db_session)]

OptionalDBSessionDep = Annotated[Optional[Connection], Depends(get_optional_db_session)]


# =============================================================================
# Exchange Rate Dependency
# =============================================================================

async def get_exchange_rates(db: DBSessionDep, settings: SettingsDep) -> ExchangeRateSnapshot:
    """Read-only rate snapshot for the current request."""
    return await fetch_exchange_rates(
        db, settings.reporting_currency, settings.fallback_exchange_rates
    )


RatesDep = Annotated[ExchangeRateSnapshot, Depends(get_exchange_rates)]


async def get_exchange_rates_or_fallback(
    db: OptionalDBSessionDep,
    settings: SettingsDep,
) -> ExchangeRateSnapshot:
    if db is None:
        return fallback_snapshot(settings.reporting_currency, settings.fallback_exchange_rates)
    return await fetch_exchange_rates(
        db, settings.reporting_currency, settings.fallback_exchange_rates
    )


FallbackRatesDep = Annotated[ExchangeRateSnapshot, Depends(get_exchange_rates_or_fallback)]
