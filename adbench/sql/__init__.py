"""
SQL Query Module for the ad benchmark backend.

Parameterized PostgreSQL queries for the read side of the engine, re-exported
here so callers can import from adbench.sql directly:

    from adbench.sql import get_metric_rows_query

    query, params = get_metric_rows_query(date_from, date_to, platform="facebook")
    rows = await conn.fetch(query, *params)
"""

from adbench.sql.metric_queries import (
    COUNTER_COLUMNS,
    get_account_query,
    get_latest_exchange_rates_query,
    get_metric_rows_query,
)

__all__ = [
    "COUNTER_COLUMNS",
    "get_account_query",
    "get_latest_exchange_rates_query",
    "get_metric_rows_query",
]
