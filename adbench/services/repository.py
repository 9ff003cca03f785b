"""
Read-side repository: turns metrics-store records into engine inputs.

The engine itself performs no I/O. Endpoint handlers fetch rows through
these functions (with a connection from DBSessionDep) and pass them to the
pure services.

Key Functions:
- fetch_metric_rows: daily MetricRows for a date range and filter set
- fetch_account: one account catalog entry
- fetch_exchange_rates: latest ExchangeRateSnapshot, or the configured
  fallback table when the rate store is empty or unreachable

Database errors (asyncpg.PostgresError, OSError) are wrapped in
AggregationFailure so callers can apply their fallback policy.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

import asyncpg
from asyncpg import Connection

from adbench.exceptions import AggregationFailure
from adbench.services.aggregates import MetricAggregate, MetricRow
from adbench.services.currency import ExchangeRateSnapshot
from adbench.sql import get_account_query, get_latest_exchange_rates_query, get_metric_rows_query


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricFilters:
    """Optional filters applied to the daily metric rows; None means unfiltered."""
    account_id: Optional[int] = None
    campaign_id: Optional[int] = None
    platform: Optional[str] = None
    objective: Optional[str] = None
    funnel_stage: Optional[str] = None
    user_journey: Optional[str] = None
    sub_industry: Optional[str] = None
    has_pixel_data: Optional[bool] = None
    tenant_id: Optional[int] = None


def record_to_row(record: Any) -> MetricRow:
    """Build a MetricRow from a joined metric record, coercing NULL counters to 0."""
    data = dict(record)
    counters = MetricAggregate.from_counters(data).counters()
    return MetricRow(
        date=data["date"],
        account_id=data["account_id"],
        account_name=data["account_name"],
        campaign_id=data["campaign_id"],
        campaign_name=data["campaign_name"] or "",
        platform=data["platform"],
        currency=data.get("currency"),
        campaign_objective=data.get("campaign_objective"),
        industry=data.get("industry"),
        sub_industry=data.get("sub_industry"),
        funnel_stage=data.get("funnel_stage"),
        user_journey=data.get("user_journey"),
        has_pixel_data=bool(data.get("has_pixel_data")),
        **counters,
    )


async def fetch_metric_rows(
    conn: Connection,
    date_from: date,
    date_to: date,
    filters: Optional[MetricFilters] = None,
) -> List[MetricRow]:
    """
    Fetch daily metric rows in [date_from, date_to].

    Args:
        conn: asyncpg connection (from DBSessionDep).
        date_from: First day, inclusive.
        date_to: Last day, inclusive.
        filters: Optional filter set, including the explicit tenant scope.

    Returns:
        List of MetricRow ordered by date, account and campaign.

    Raises:
        AggregationFailure: If the metrics store query fails.
    """
    filters = filters or MetricFilters()
    query, params = get_metric_rows_query(date_from, date_to, **asdict(filters))

    try:
        records = await conn.fetch(query, *params)
    except (asyncpg.PostgresError, OSError) as e:
        raise AggregationFailure(f"Metric query failed: {e}") from e

    rows = [record_to_row(record) for record in records]
    logger.info(f"Fetched {len(rows)} metric rows for {date_from}..{date_to}")
    return rows


async def fetch_account(
    conn: Connection,
    account_id: int,
    tenant_id: Optional[int] = None,
) -> Optional[Dict[str, Any]]:
    """
    Fetch one account catalog entry, or None when it does not exist.

    Raises:
        AggregationFailure: If the query fails.
    """
    query, params = get_account_query(account_id, tenant_id)
    try:
        record = await conn.fetchrow(query, *params)
    except (asyncpg.PostgresError, OSError) as e:
        raise AggregationFailure(f"Account query failed: {e}") from e
    return dict(record) if record else None


def fallback_snapshot(reporting_currency: str, fallback_rates: Mapping[str, float]) -> ExchangeRateSnapshot:
    return ExchangeRateSnapshot(
        reporting_currency=reporting_currency,
        rates=fallback_rates,
        version="fallback",
    )


async def fetch_exchange_rates(
    conn: Connection,
    reporting_currency: str,
    fallback_rates: Mapping[str, float],
) -> ExchangeRateSnapshot:
    """
    Load the latest exchange-rate snapshot into the reporting currency.

    Falls back to the configured static table when the rate store holds no
    rows or cannot be queried.
    """
    query, params = get_latest_exchange_rates_query(reporting_currency)
    try:
        records = await conn.fetch(query, *params)
    except (asyncpg.PostgresError, OSError) as e:
        logger.warning(f"Exchange rate query failed, using fallback rates: {e}")
        return fallback_snapshot(reporting_currency, fallback_rates)

    if not records:
        logger.warning("No exchange rate snapshot found, using fallback rates")
        return fallback_snapshot(reporting_currency, fallback_rates)

    effective = records[0]["effective_date"]
    return ExchangeRateSnapshot(
        reporting_currency=reporting_currency,
        rates={record["currency"]: float(record["rate"]) for record in records},
        version=effective.isoformat() if effective is not None else "latest",
    )
