"""
KPI summary, timeseries and spend breakdown over daily metric rows.

All three views share one path: rows are normalized into the reporting
currency, grouped with pandas (see aggregates.group_rows), and KPIs are
computed per campaign aggregate so the results-resolution policy applies
campaign by campaign in every view.

Key Functions:
- normalize_rows: currency conversion with the caller's unknown-currency policy
- kpi_summary: objective KPIs plus a per-source-currency breakdown
- timeseries: one metric grouped by date, campaign, account or platform
- spend_breakdown: spend, daily average and cost per result per account/campaign
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from adbench.exceptions import UnknownCurrency
from adbench.models.enums import SpendGroupBy, TimeseriesGroupBy
from adbench.models.schemas import (
    CurrencyBreakdownItem,
    DateRange,
    KpiSummaryResponse,
    SpendBreakdownItem,
    SpendBreakdownResponse,
    TimeseriesPoint,
    TimeseriesResponse,
)
from adbench.services.aggregates import MetricAggregate, MetricRow, group_rows
from adbench.services.calculators import get_calculator, safe_divide
from adbench.services.currency import CurrencyNormalizer
from adbench.services.results import resolve_results, sum_all_results


logger = logging.getLogger(__name__)


# Counters reported alongside every timeseries point
RAW_METRICS = ("spend", "impressions", "clicks", "revenue", "leads", "calls")

TIMESERIES_GROUP_KEYS: Dict[str, List[str]] = {
    TimeseriesGroupBy.DATE.value: ["date"],
    TimeseriesGroupBy.CAMPAIGN.value: ["campaign_id", "campaign_name"],
    TimeseriesGroupBy.ACCOUNT.value: ["account_id"],
    TimeseriesGroupBy.PLATFORM.value: ["platform"],
}

# Key column used as the timeseries period
TIMESERIES_PERIOD_KEY: Dict[str, str] = {
    TimeseriesGroupBy.DATE.value: "date",
    TimeseriesGroupBy.CAMPAIGN.value: "campaign_name",
    TimeseriesGroupBy.ACCOUNT.value: "account_id",
    TimeseriesGroupBy.PLATFORM.value: "platform",
}

SPEND_GROUP_KEYS: Dict[str, List[str]] = {
    SpendGroupBy.ACCOUNT.value: ["account_id", "account_name"],
    SpendGroupBy.CAMPAIGN.value: ["account_id", "account_name", "campaign_id", "campaign_name", "platform"],
}


# =============================================================================
# Currency Normalization
# =============================================================================


def source_currency(row: MetricRow, default_currency: str = "USD") -> str:
    """Currency the row's monetary counters are recorded in."""
    return (row.currency or default_currency).upper()


def normalize_row(
    row: MetricRow,
    normalizer: CurrencyNormalizer,
    default_currency: str = "USD",
    treat_unknown_as_reporting: bool = False,
) -> MetricRow:
    """
    Return a copy of ``row`` with spend and revenue in the reporting currency.

    Raises:
        UnknownCurrency: If the row's currency has no rate and
            ``treat_unknown_as_reporting`` is False.
    """
    currency = source_currency(row, default_currency)
    try:
        spend = normalizer.to_reporting_currency(row.spend, currency)
        revenue = normalizer.to_reporting_currency(row.revenue, currency)
    except UnknownCurrency:
        if not treat_unknown_as_reporting:
            raise
        logger.warning(
            f"No rate for {currency} (account {row.account_id}); "
            f"treating amounts as {normalizer.reporting_currency}"
        )
        spend, revenue = row.spend, row.revenue
    return replace(row, spend=spend, revenue=revenue, currency=normalizer.reporting_currency)


def normalize_rows(
    rows: Sequence[MetricRow],
    normalizer: CurrencyNormalizer,
    default_currency: str = "USD",
    treat_unknown_as_reporting: bool = False,
) -> List[MetricRow]:
    return [
        normalize_row(row, normalizer, default_currency, treat_unknown_as_reporting)
        for row in rows
    ]


def campaign_aggregates(rows: Sequence[MetricRow], currency: Optional[str] = None) -> List[MetricAggregate]:
    """One aggregate per campaign, carrying the campaign's name and objective."""
    return [group.aggregate for group in group_rows(rows, ["campaign_id"], currency=currency)]


# =============================================================================
# KPI Summary
# =============================================================================


def kpi_summary(
    rows: Sequence[MetricRow],
    objective: str,
    normalizer: CurrencyNormalizer,
    date_range: DateRange,
    default_currency: str = "USD",
    treat_unknown_as_reporting: bool = False,
) -> KpiSummaryResponse:
    """
    Objective KPIs over ``rows`` in the reporting currency.

    Args:
        rows: Daily metric rows, already filtered to the request scope.
        objective: Objective name selecting the calculator.
        normalizer: Converter into the reporting currency.
        date_range: Range the rows were fetched for (echoed in the response).
        default_currency: Currency assumed for rows without one.
        treat_unknown_as_reporting: Unknown-currency fallback policy.

    Returns:
        KpiSummaryResponse with the KPIs and a breakdown per source currency.

    Raises:
        InvalidObjective: If the objective has no calculator.
        UnknownCurrency: If a row's currency is unknown and the fallback
            policy is off.
    """
    calculator = get_calculator(objective)
    reporting = normalizer.reporting_currency

    by_currency: Dict[str, List[MetricRow]] = {}
    for row in rows:
        by_currency.setdefault(source_currency(row, default_currency), []).append(row)

    normalized: List[MetricRow] = []
    breakdown: List[CurrencyBreakdownItem] = []
    for currency in sorted(by_currency):
        currency_rows = normalize_rows(
            by_currency[currency], normalizer, default_currency, treat_unknown_as_reporting
        )
        normalized.extend(currency_rows)
        kpis = calculator.calculate_kpis(campaign_aggregates(currency_rows, reporting))
        breakdown.append(CurrencyBreakdownItem(currency=currency, kpis=kpis.as_dict()))

    kpis = calculator.calculate_kpis(campaign_aggregates(normalized, reporting))
    logger.info(
        f"KPI summary for {calculator.objective}: {len(rows)} rows, "
        f"{len(by_currency)} source currencies"
    )

    return KpiSummaryResponse(
        objective=calculator.objective,
        date_range=date_range,
        kpis=kpis.as_dict(),
        primary_kpis=calculator.primary_kpis(),
        secondary_kpis=calculator.secondary_kpis(),
        currency=reporting,
        currency_breakdown=breakdown,
    )


# =============================================================================
# Timeseries
# =============================================================================


def timeseries(
    rows: Sequence[MetricRow],
    metric: str,
    objective: str,
    group_by: str,
    normalizer: CurrencyNormalizer,
    date_range: DateRange,
    default_currency: str = "USD",
    treat_unknown_as_reporting: bool = False,
) -> TimeseriesResponse:
    """
    One metric per period, ordered by period.

    Raw counters (spend, impressions, ...) are reported as summed; every
    other metric is the objective calculator's KPI over the period's
    campaign aggregates.

    Raises:
        InvalidObjective: If the objective has no calculator.
        ValueError: If ``group_by`` is not date, campaign, account or platform.
    """
    calculator = get_calculator(objective)
    group_by = getattr(group_by, "value", group_by)
    metric = getattr(metric, "value", metric)
    if group_by not in TIMESERIES_GROUP_KEYS:
        raise ValueError(f"Unsupported group_by: {group_by}")

    reporting = normalizer.reporting_currency
    normalized = normalize_rows(rows, normalizer, default_currency, treat_unknown_as_reporting)

    points = []
    for group in group_rows(normalized, TIMESERIES_GROUP_KEYS[group_by], currency=reporting):
        counters = group.aggregate.counters()
        if metric in RAW_METRICS:
            value = counters[metric]
        else:
            value = calculator.kpi_value(metric, campaign_aggregates(group.rows, reporting))
        points.append(
            TimeseriesPoint(
                period=group.key[TIMESERIES_PERIOD_KEY[group_by]],
                value=round(float(value), 4),
                raw_metrics={name: counters[name] for name in RAW_METRICS},
            )
        )

    return TimeseriesResponse(
        metric=metric,
        objective=calculator.objective,
        group_by=group_by,
        date_range=date_range,
        currency=reporting,
        data=points,
    )


# =============================================================================
# Spend Breakdown
# =============================================================================


def spend_breakdown(
    rows: Sequence[MetricRow],
    group_by: str,
    normalizer: CurrencyNormalizer,
    date_range: DateRange,
    default_currency: str = "USD",
    treat_unknown_as_reporting: bool = False,
) -> SpendBreakdownResponse:
    """
    Spend per account or campaign, ordered by total spend descending.

    Campaign results follow the results-resolution policy; account results
    are leads + purchases + calls + conversions.
    """
    group_by = getattr(group_by, "value", group_by)
    if group_by not in SPEND_GROUP_KEYS:
        raise ValueError(f"Unsupported group_by: {group_by}")

    reporting = normalizer.reporting_currency
    original_currency = {row.account_id: source_currency(row, default_currency) for row in rows}
    normalized = normalize_rows(rows, normalizer, default_currency, treat_unknown_as_reporting)
    by_campaign = group_by == SpendGroupBy.CAMPAIGN.value

    items = []
    for group in group_rows(normalized, SPEND_GROUP_KEYS[group_by], currency=reporting):
        aggregate = group.aggregate
        if by_campaign:
            results = resolve_results(aggregate)
        else:
            results = sum_all_results(aggregate)
        items.append(
            SpendBreakdownItem(
                account_id=group.key["account_id"],
                account_name=group.key["account_name"],
                campaign_id=group.key.get("campaign_id"),
                campaign_name=group.key.get("campaign_name"),
                platform=group.key.get("platform"),
                original_currency=original_currency.get(group.key["account_id"]),
                total_spend=round(aggregate.spend, 2),
                daily_average=round(safe_divide(aggregate.spend, group.active_days), 2),
                active_days=group.active_days,
                results=results,
                cost_per_result=round(safe_divide(aggregate.spend, results), 2),
            )
        )

    items.sort(key=lambda item: item.total_spend, reverse=True)
    return SpendBreakdownResponse(
        group_by=group_by,
        date_range=date_range,
        currency=reporting,
        currency_note=f"All spend amounts are converted to {reporting}",
        data=items,
    )
