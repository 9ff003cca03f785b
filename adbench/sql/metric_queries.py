"""
Metric Queries Module for the ad benchmark backend.

Provides parameterized PostgreSQL queries for the read-side aggregation
contract of the engine:

- Daily metric rows joined with their campaign and account catalog entries
  (ad_metrics -> ad_campaigns -> ad_accounts), filterable by date range,
  account, campaign, platform, objective, funnel stage, user journey,
  sub-industry, pixel flag and tenant
- A single account catalog entry
- The latest exchange-rate snapshot into the reporting currency

Every builder returns ``(query, params)`` with asyncpg ``$n`` placeholders;
filter values are never interpolated into the SQL text.
"""

from datetime import date
from typing import Any, List, Optional, Tuple


# =============================================================================
# CONSTANTS
# =============================================================================

# Counter columns summed per (date, campaign); mirrors MetricAggregate
COUNTER_COLUMNS: Tuple[str, ...] = (
    "spend",
    "impressions",
    "clicks",
    "conversions",
    "revenue",
    "leads",
    "calls",
    "purchases",
    "reach",
    "video_views",
    "sessions",
    "atc",
)

# Campaign-level filters: (parameter name, qualified column)
CAMPAIGN_FILTER_COLUMNS: Tuple[Tuple[str, str], ...] = (
    ("account_id", "a.id"),
    ("campaign_id", "c.id"),
    ("platform", "m.platform"),
    ("objective", "c.objective"),
    ("funnel_stage", "c.funnel_stage"),
    ("user_journey", "c.user_journey"),
    ("sub_industry", "c.sub_industry"),
    ("has_pixel_data", "c.has_pixel_data"),
    ("tenant_id", "a.tenant_id"),
)


class QueryParams:
    """Collects positional parameters and hands out ``$n`` placeholders."""

    def __init__(self):
        self.values: List[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f"${len(self.values)}"


# =============================================================================
# DAILY METRIC ROWS
# =============================================================================

def get_metric_rows_query(
    date_from: date,
    date_to: date,
    account_id: Optional[int] = None,
    campaign_id: Optional[int] = None,
    platform: Optional[str] = None,
    objective: Optional[str] = None,
    funnel_stage: Optional[str] = None,
    user_journey: Optional[str] = None,
    sub_industry: Optional[str] = None,
    has_pixel_data: Optional[bool] = None,
    tenant_id: Optional[int] = None,
) -> Tuple[str, List[Any]]:
    """
    Generate the query for daily metric rows in [date_from, date_to].

    One row per (date, campaign, platform) with counters summed, so that
    duplicate ad-level rows collapse before they reach the engine.
    Filters left as None are not applied.

    Returns:
        Tuple of (query string, positional parameters).
    """
    params = QueryParams()
    conditions = [
        f"m.date >= {params.add(date_from)}",
        f"m.date <= {params.add(date_to)}",
    ]

    filters = {
        "account_id": account_id,
        "campaign_id": campaign_id,
        "platform": platform,
        "objective": objective,
        "funnel_stage": funnel_stage,
        "user_journey": user_journey,
        "sub_industry": sub_industry,
        "has_pixel_data": has_pixel_data,
        "tenant_id": tenant_id,
    }
    for name, column in CAMPAIGN_FILTER_COLUMNS:
        value = filters[name]
        if value is not None:
            conditions.append(f"{column} = {params.add(value)}")

    counters = ",\n        ".join(
        f"COALESCE(SUM(m.{column}), 0) AS {column}" for column in COUNTER_COLUMNS
    )
    where = "\n      AND ".join(conditions)

    query = f"""
    SELECT
        m.date,
        a.id AS account_id,
        a.account_name,
        c.id AS campaign_id,
        c.name AS campaign_name,
        c.objective AS campaign_objective,
        m.platform,
        a.currency,
        a.industry,
        c.sub_industry,
        c.funnel_stage,
        c.user_journey,
        COALESCE(c.has_pixel_data, FALSE) AS has_pixel_data,
        {counters}
    FROM ad_metrics m
    JOIN ad_campaigns c ON c.id = m.ad_campaign_id
    JOIN ad_accounts a ON a.id = c.ad_account_id
    WHERE {where}
    GROUP BY
        m.date, a.id, a.account_name, c.id, c.name, c.objective, m.platform,
        a.currency, a.industry, c.sub_industry, c.funnel_stage,
        c.user_journey, c.has_pixel_data
    ORDER BY m.date ASC, a.id ASC, c.id ASC
    """
    return query, params.values


# =============================================================================
# ACCOUNT CATALOG
# =============================================================================

def get_account_query(account_id: int, tenant_id: Optional[int] = None) -> Tuple[str, List[Any]]:
    """Generate the query for one account catalog entry."""
    params = QueryParams()
    query = f"""
    SELECT id, account_name, platform, currency, industry
    FROM ad_accounts
    WHERE id = {params.add(account_id)}
    """
    if tenant_id is not None:
        query += f"  AND tenant_id = {params.add(tenant_id)}\n"
    return query, params.values


# =============================================================================
# EXCHANGE RATES
# =============================================================================

def get_latest_exchange_rates_query(reporting_currency: str) -> Tuple[str, List[Any]]:
    """
    Generate the query for the most recent rate snapshot into
    ``reporting_currency``: one row per currency from the latest
    effective date.
    """
    params = QueryParams()
    currency = params.add(reporting_currency)
    query = f"""
    SELECT currency, rate, effective_date
    FROM exchange_rates
    WHERE target_currency = {currency}
      AND effective_date = (
          SELECT MAX(effective_date)
          FROM exchange_rates
          WHERE target_currency = {currency}
      )
    ORDER BY currency ASC
    """
    return query, params.values
