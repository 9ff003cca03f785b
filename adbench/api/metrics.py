"""
FastAPI router module for KPI metric endpoints.

Key Endpoints:
- GET /metrics/summary: objective KPIs over a date range
- GET /metrics/timeseries: one metric grouped by date, campaign, account or platform
- GET /metrics/spend-breakdown: spend and cost per result per account or campaign

All monetary values are normalized into the reporting currency before any
KPI is computed. Validation errors (bad date range, unknown objective,
unknown currency without the fallback policy) are surfaced as HTTP 400.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from adbench.core.dependencies import DBSessionDep, RatesDep, SettingsDep
from adbench.exceptions import InvalidObjective, UnknownCurrency
from adbench.models.enums import SpendGroupBy, TimeseriesGroupBy, TimeseriesMetric
from adbench.models.schemas import (
    DateRange,
    KpiSummaryResponse,
    SpendBreakdownResponse,
    TimeseriesResponse,
)
from adbench.services.calculators import get_calculator
from adbench.services.currency import CurrencyNormalizer
from adbench.services.metrics import kpi_summary, spend_breakdown, timeseries
from adbench.services.repository import MetricFilters, fetch_metric_rows


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/metrics", tags=["metrics"])


# =============================================================================
# Helper Functions
# =============================================================================

def _date_range(date_from: date, date_to: date) -> DateRange:
    """
    Raises:
        HTTPException 400: If ``date_from`` is after ``date_to``.
    """
    if date_from > date_to:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid date range: from ({date_from}) is after to ({date_to})",
        )
    return DateRange(from_=date_from, to=date_to)


def _validate_objective(objective: str) -> None:
    try:
        get_calculator(objective)
    except InvalidObjective as e:
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/summary", response_model=KpiSummaryResponse)
async def get_kpi_summary(
    db: DBSessionDep,
    settings: SettingsDep,
    rates: RatesDep,
    objective: str = Query(..., description="Campaign objective, e.g. leads"),
    date_from: date = Query(..., alias="from", description="First day (inclusive)"),
    date_to: date = Query(..., alias="to", description="Last day (inclusive)"),
    account_id: Optional[int] = Query(None, description="Restrict to one account"),
    campaign_id: Optional[int] = Query(None, description="Restrict to one campaign"),
    platform: Optional[str] = Query(None, description="Restrict to one ad platform"),
    tenant_id: Optional[int] = Query(None, description="Tenant scope"),
) -> KpiSummaryResponse:
    """
    Objective KPIs (primary and secondary) over a date range.

    Raises:
        HTTPException 400: Bad date range, unknown objective or unknown currency.
        HTTPException 500: If the metrics store fails.
    """
    date_range = _date_range(date_from, date_to)
    _validate_objective(objective)

    try:
        rows = await fetch_metric_rows(
            db,
            date_from,
            date_to,
            MetricFilters(
                account_id=account_id,
                campaign_id=campaign_id,
                platform=platform,
                tenant_id=tenant_id,
            ),
        )
        return kpi_summary(
            rows,
            objective,
            CurrencyNormalizer(rates),
            date_range,
            default_currency=settings.default_account_currency,
            treat_unknown_as_reporting=settings.treat_unknown_currency_as_reporting,
        )
    except UnknownCurrency as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error computing KPI summary: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing KPI summary: {str(e)}",
        )


@router.get("/timeseries", response_model=TimeseriesResponse)
async def get_timeseries(
    db: DBSessionDep,
    settings: SettingsDep,
    rates: RatesDep,
    metric: TimeseriesMetric = Query(..., description="KPI or raw counter to chart"),
    objective: str = Query("leads", description="Objective deciding the results counter"),
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    group_by: TimeseriesGroupBy = Query(TimeseriesGroupBy.DATE),
    account_id: Optional[int] = Query(None),
    campaign_id: Optional[int] = Query(None),
    platform: Optional[str] = Query(None),
    tenant_id: Optional[int] = Query(None),
) -> TimeseriesResponse:
    """
    One metric per period, ordered by period.

    Raises:
        HTTPException 400: Bad date range, unknown objective or unknown currency.
        HTTPException 500: If the metrics store fails.
    """
    date_range = _date_range(date_from, date_to)
    _validate_objective(objective)

    try:
        rows = await fetch_metric_rows(
            db,
            date_from,
            date_to,
            MetricFilters(
                account_id=account_id,
                campaign_id=campaign_id,
                platform=platform,
                tenant_id=tenant_id,
            ),
        )
        return timeseries(
            rows,
            metric.value,
            objective,
            group_by.value,
            CurrencyNormalizer(rates),
            date_range,
            default_currency=settings.default_account_currency,
            treat_unknown_as_reporting=settings.treat_unknown_currency_as_reporting,
        )
    except UnknownCurrency as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error computing timeseries for {metric.value}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing timeseries: {str(e)}",
        )


@router.get("/spend-breakdown", response_model=SpendBreakdownResponse)
async def get_spend_breakdown(
    db: DBSessionDep,
    settings: SettingsDep,
    rates: RatesDep,
    date_from: date = Query(..., alias="from"),
    date_to: date = Query(..., alias="to"),
    group_by: SpendGroupBy = Query(SpendGroupBy.ACCOUNT),
    account_id: Optional[int] = Query(None),
    platform: Optional[str] = Query(None),
    tenant_id: Optional[int] = Query(None),
) -> SpendBreakdownResponse:
    """
    Spend, daily average and cost per result per account or campaign,
    ordered by total spend.
    """
    date_range = _date_range(date_from, date_to)

    try:
        rows = await fetch_metric_rows(
            db,
            date_from,
            date_to,
            MetricFilters(account_id=account_id, platform=platform, tenant_id=tenant_id),
        )
        return spend_breakdown(
            rows,
            group_by.value,
            CurrencyNormalizer(rates),
            date_range,
            default_currency=settings.default_account_currency,
            treat_unknown_as_reporting=settings.treat_unknown_currency_as_reporting,
        )
    except UnknownCurrency as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error computing spend breakdown: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing spend breakdown: {str(e)}",
        )
