"""
FastAPI router module for industry benchmark endpoints.

Key Endpoints:
- GET /benchmarks/industries: percentile bands and group KPIs per industry group
- GET /benchmarks/accounts/{account_id}: one account against its industry
- GET /benchmarks/summary: totals plus best and worst industries
- GET /benchmarks/insights: account or industry insights
- GET /benchmarks/calculate-results: expected results for a spend
- GET /benchmarks/methodology, /filter-options, /objectives: reference data

Benchmarks are advisory: the industries, summary and insights endpoints
never answer with a 5xx. When the live computation fails or there is no
population they return a static dataset flagged ``fallback: true``. They take
their connection from ``get_optional_db_session`` so an unreachable metrics
store reaches that fallback instead of failing in dependency resolution.

Dates default to the configured window ending yesterday, so partially
synced days are excluded.
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from asyncpg import Connection
from fastapi import APIRouter, HTTPException, Query

from adbench.core.config import Settings
from adbench.core.dependencies import (
    DBSessionDep,
    FallbackRatesDep,
    OptionalDBSessionDep,
    RatesDep,
    SettingsDep,
)
from adbench.exceptions import AggregationFailure, ForecastUnavailable
from adbench.models.enums import BenchmarkDimension, FunnelStage, Platform, UserJourney
from adbench.models.schemas import (
    AccountBenchmark,
    AccountBenchmarkResponse,
    BenchmarkSummaryResponse,
    DateRange,
    ExpectedResultsResponse,
    FilterOptionsResponse,
    IndustryBenchmarksResponse,
    InsightsResponse,
    MethodologyResponse,
    ObjectivesResponse,
)
from adbench.services.aggregates import AccountMetrics, MetricAggregate, build_account_metrics
from adbench.services.benchmarks import (
    BENCHMARK_METRICS,
    build_account_benchmark,
    build_benchmark_summary,
    build_industry_benchmarks,
    compute_benchmarks,
    fallback_benchmark_summary,
    fallback_industry_benchmarks,
    normalize_group_by,
)
from adbench.services.calculators import supported_objectives
from adbench.services.currency import CurrencyNormalizer, ExchangeRateSnapshot
from adbench.services.forecast import FORECAST_OBJECTIVES, calculate_expected_results
from adbench.services.insights import (
    fallback_insights,
    generate_comparison_insights,
    generate_industry_insights,
)
from adbench.services.metrics import normalize_rows
from adbench.services.repository import MetricFilters, fetch_account, fetch_metric_rows


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/benchmarks", tags=["benchmarks"])


# =============================================================================
# Static Reference Data
# =============================================================================

SAMPLE_DATA_MESSAGE = "Using sample data - connect your advertising accounts to see actual benchmarks"
DEFAULT_DATA_MESSAGE = "Using default data - connect your advertising accounts to see actual benchmarks"

FILTER_PLATFORMS: Tuple[Platform, ...] = (Platform.FACEBOOK, Platform.GOOGLE, Platform.TIKTOK)

PLATFORM_LABELS: Dict[str, str] = {
    Platform.FACEBOOK.value: "Facebook / Meta",
    Platform.GOOGLE.value: "Google Ads",
    Platform.TIKTOK.value: "TikTok Ads",
}

FUNNEL_STAGE_LABELS: Dict[str, str] = {
    FunnelStage.TOF.value: "Top of Funnel (Awareness)",
    FunnelStage.MOF.value: "Middle of Funnel (Consideration)",
    FunnelStage.BOF.value: "Bottom of Funnel (Conversion)",
}

USER_JOURNEY_LABELS: Dict[str, str] = {
    UserJourney.INSTANT_FORM.value: "Instant Form (Lead Form)",
    UserJourney.LANDING_PAGE.value: "Landing Page",
}

METRIC_NAMES: Dict[str, str] = {
    "ctr": "CTR",
    "cpc": "CPC",
    "cpm": "CPM",
    "cvr": "CVR",
    "cpl": "CPL",
}


# =============================================================================
# Helper Functions
# =============================================================================

def _date_range(
    date_from: Optional[date],
    date_to: Optional[date],
    window_days: int,
    end: Optional[date] = None,
) -> DateRange:
    """
    Fill in missing dates with ``window_days`` ending ``end`` (yesterday by
    default).

    Raises:
        HTTPException 400: If the resulting from date is after the to date.
    """
    if end is None:
        end = date.today() - timedelta(days=1)
    date_to = date_to or end
    date_from = date_from or date_to - timedelta(days=window_days - 1)
    if date_from > date_to:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid date range: from ({date_from}) is after to ({date_to})",
        )
    return DateRange(from_=date_from, to=date_to)


def _require_connection(db: Optional[Connection]) -> Connection:
    if db is None:
        raise AggregationFailure("Metrics store unavailable")
    return db


def _benchmark_options(settings: Settings) -> Dict[str, Any]:
    return {
        "min_accounts": settings.min_benchmark_accounts,
        "outlier_filtering": settings.benchmark_outlier_filtering,
    }


async def _load_accounts(
    db: Connection,
    settings: Settings,
    rates: ExchangeRateSnapshot,
    date_range: DateRange,
    dimensions: Sequence[str] = (BenchmarkDimension.INDUSTRY.value,),
    filters: Optional[MetricFilters] = None,
) -> List[AccountMetrics]:
    """Fetch rows, normalize them and collapse them into per-account metrics."""
    rows = await fetch_metric_rows(db, date_range.from_, date_range.to, filters)
    normalizer = CurrencyNormalizer(rates)
    normalized = normalize_rows(
        rows,
        normalizer,
        default_currency=settings.default_account_currency,
        treat_unknown_as_reporting=settings.treat_unknown_currency_as_reporting,
    )
    return build_account_metrics(normalized, dimensions, currency=normalizer.reporting_currency)


async def _account_benchmark(
    db: Connection,
    settings: Settings,
    rates: ExchangeRateSnapshot,
    date_range: DateRange,
    account_row: Dict[str, Any],
    tenant_id: Optional[int] = None,
) -> AccountBenchmark:
    """Classify a catalog account against the population of its tenant scope."""
    population = await _load_accounts(
        db, settings, rates, date_range, filters=MetricFilters(tenant_id=tenant_id)
    )
    account = next(
        (item for item in population if item.account_id == account_row["id"]),
        None,
    )
    if account is None:
        # No metric rows in the window
        account = AccountMetrics(
            account_id=account_row["id"],
            account_name=account_row["account_name"],
            aggregate=MetricAggregate(currency=rates.reporting_currency),
            dimensions={BenchmarkDimension.INDUSTRY.value: account_row.get("industry")},
        )
    return build_account_benchmark(
        account,
        population,
        currency=rates.reporting_currency,
        **_benchmark_options(settings),
    )


# =============================================================================
# Benchmark Endpoints
# =============================================================================


@router.get("/industries", response_model=IndustryBenchmarksResponse)
async def get_industry_benchmarks(
    db: OptionalDBSessionDep,
    settings: SettingsDep,
    rates: FallbackRatesDep,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    platform: Optional[Platform] = Query(None),
    objective: Optional[str] = Query(None, description="Declared campaign objective filter"),
    funnel_stage: Optional[FunnelStage] = Query(None),
    user_journey: Optional[UserJourney] = Query(None),
    sub_industry: Optional[str] = Query(None),
    has_pixel_data: Optional[bool] = Query(None),
    tenant_id: Optional[int] = Query(None),
    group_by: List[BenchmarkDimension] = Query(
        default=[], description="Refinements beyond industry (repeatable)"
    ),
) -> IndustryBenchmarksResponse:
    """
    Percentile bands per metric per industry group, with each group's own
    KPIs classified against them. Never fails with a 5xx.
    """
    date_range = _date_range(date_from, date_to, settings.default_window_days)
    dimensions = normalize_group_by(group_by)

    try:
        db = _require_connection(db)
        accounts = await _load_accounts(
            db,
            settings,
            rates,
            date_range,
            dimensions,
            MetricFilters(
                platform=platform.value if platform else None,
                objective=objective,
                funnel_stage=funnel_stage.value if funnel_stage else None,
                user_journey=user_journey.value if user_journey else None,
                sub_industry=sub_industry,
                has_pixel_data=has_pixel_data,
                tenant_id=tenant_id,
            ),
        )
        data = build_industry_benchmarks(
            accounts,
            group_by=dimensions,
            currency=rates.reporting_currency,
            **_benchmark_options(settings),
        )
    except Exception as e:
        logger.warning(f"Industry benchmark computation failed, using fallback: {e}")
        data = {}

    if not data:
        return IndustryBenchmarksResponse(
            data=fallback_industry_benchmarks(),
            date_range=date_range,
            group_by=dimensions,
            fallback=True,
            message=SAMPLE_DATA_MESSAGE,
        )

    return IndustryBenchmarksResponse(data=data, date_range=date_range, group_by=dimensions)


@router.get("/accounts/{account_id}", response_model=AccountBenchmarkResponse)
async def get_account_benchmark(
    account_id: int,
    db: DBSessionDep,
    settings: SettingsDep,
    rates: RatesDep,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    tenant_id: Optional[int] = Query(None),
) -> AccountBenchmarkResponse:
    """
    One account's KPIs classified against its industry's bands.

    Raises:
        HTTPException 404: If the account does not exist.
        HTTPException 500: If the metrics store fails.
    """
    date_range = _date_range(date_from, date_to, settings.default_window_days)

    try:
        account_row = await fetch_account(db, account_id, tenant_id)
        if account_row is None:
            raise HTTPException(status_code=404, detail=f"Account {account_id} not found")

        benchmark = await _account_benchmark(db, settings, rates, date_range, account_row, tenant_id)
        return AccountBenchmarkResponse(data=benchmark, date_range=date_range)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error computing benchmark for account {account_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error computing account benchmark: {str(e)}",
        )


@router.get("/summary", response_model=BenchmarkSummaryResponse)
async def get_benchmark_summary(
    db: OptionalDBSessionDep,
    settings: SettingsDep,
    rates: FallbackRatesDep,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    tenant_id: Optional[int] = Query(None),
) -> BenchmarkSummaryResponse:
    """Totals across industries plus the top and bottom three. Never fails with a 5xx."""
    date_range = _date_range(date_from, date_to, settings.default_window_days)

    try:
        db = _require_connection(db)
        accounts = await _load_accounts(
            db, settings, rates, date_range, filters=MetricFilters(tenant_id=tenant_id)
        )
        industries = build_industry_benchmarks(
            accounts, currency=rates.reporting_currency, **_benchmark_options(settings)
        )
    except Exception as e:
        logger.warning(f"Benchmark summary computation failed, using fallback: {e}")
        industries = {}

    if not industries:
        return BenchmarkSummaryResponse(
            data=fallback_benchmark_summary(),
            date_range=date_range,
            fallback=True,
            message=DEFAULT_DATA_MESSAGE,
        )

    return BenchmarkSummaryResponse(data=build_benchmark_summary(industries), date_range=date_range)


@router.get("/insights", response_model=InsightsResponse)
async def get_insights(
    db: OptionalDBSessionDep,
    settings: SettingsDep,
    rates: FallbackRatesDep,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    industry: Optional[str] = Query(None, description="Industry to explain"),
    account_id: Optional[int] = Query(None, description="Account to explain"),
    tenant_id: Optional[int] = Query(None),
) -> InsightsResponse:
    """
    Improvement and strength insights for an account, an industry, or the
    overall ranking when neither is given. Never fails with a 5xx.
    """
    date_range = _date_range(date_from, date_to, settings.default_window_days)
    currency = rates.reporting_currency

    try:
        db = _require_connection(db)
        if account_id is not None:
            account_row = await fetch_account(db, account_id, tenant_id)
            if account_row is None:
                raise LookupError(f"Account {account_id} not found")
            benchmark = await _account_benchmark(db, settings, rates, date_range, account_row, tenant_id)
            insights = generate_comparison_insights(benchmark.metrics, currency)
        else:
            accounts = await _load_accounts(
                db, settings, rates, date_range, filters=MetricFilters(tenant_id=tenant_id)
            )
            industries = build_industry_benchmarks(
                accounts, currency=currency, **_benchmark_options(settings)
            )
            insights = []
            if industry and industry in industries:
                insights = generate_comparison_insights(industries[industry].metrics, currency)
            if not insights:
                insights = generate_industry_insights(build_benchmark_summary(industries))

    except Exception as e:
        logger.warning(f"Insight generation failed, using fallback: {e}")
        return InsightsResponse(insights=fallback_insights(), date_range=date_range, fallback=True)

    return InsightsResponse(insights=insights, date_range=date_range)


# =============================================================================
# Expected Results Calculator
# =============================================================================


@router.get("/calculate-results", response_model=ExpectedResultsResponse)
async def calculate_results(
    db: DBSessionDep,
    settings: SettingsDep,
    rates: RatesDep,
    spend: float = Query(..., ge=1, le=1_000_000, description="Budget in the reporting currency"),
    industry: str = Query(..., description="Industry to project from"),
    objective: str = Query("leads", description="Objective deciding the primary result"),
    tenant_id: Optional[int] = Query(None),
) -> ExpectedResultsResponse:
    """
    Expected impressions, clicks and results for four performance scenarios.

    Raises:
        HTTPException 400: If the objective has no projection rule.
        HTTPException 422: If the industry has no benchmark population.
        HTTPException 500: If the metrics store fails.
    """
    if objective not in FORECAST_OBJECTIVES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid objective: {objective}. Valid values: {list(FORECAST_OBJECTIVES)}",
        )
    date_range = _date_range(None, None, settings.forecast_window_days, end=date.today())

    try:
        accounts = await _load_accounts(
            db, settings, rates, date_range, filters=MetricFilters(tenant_id=tenant_id)
        )
        bands = compute_benchmarks(
            accounts, group_by=[BenchmarkDimension.INDUSTRY], **_benchmark_options(settings)
        )
        return calculate_expected_results(
            spend,
            industry,
            bands.get((industry,)),
            objective=objective,
            currency=rates.reporting_currency,
            date_range=date_range,
        )
    except ForecastUnavailable as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error calculating expected results for {industry}: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error calculating expected results: {str(e)}",
        )


# =============================================================================
# Reference Data Endpoints
# =============================================================================


@router.get("/methodology", response_model=MethodologyResponse)
async def get_methodology(
    settings: SettingsDep,
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
) -> MethodologyResponse:
    date_range = None
    if date_from or date_to:
        date_range = _date_range(date_from, date_to, settings.default_window_days)

    return MethodologyResponse(
        description="Benchmarks are calculated dynamically from actual account performance data",
        methodology={
            "data_source": "Real account metrics from your connected accounts",
            "percentiles": {
                "min": "25th percentile (good performance threshold)",
                "avg": "50th percentile (median performance)",
                "max": "75th percentile (excellent performance threshold)",
            },
            "interpolation": "Linear interpolation between order statistics",
            "minimum_accounts": (
                f"At least {settings.min_benchmark_accounts} accounts required per "
                "industry for meaningful benchmarks"
            ),
            "outlier_filtering": settings.benchmark_outlier_filtering,
            "metrics_calculated": [METRIC_NAMES[metric] for metric in BENCHMARK_METRICS],
            "currency": settings.reporting_currency,
        },
        date_range=date_range,
    )


@router.get("/filter-options", response_model=FilterOptionsResponse)
async def get_filter_options() -> FilterOptionsResponse:
    return FilterOptionsResponse(
        platforms=[platform.value for platform in FILTER_PLATFORMS],
        funnel_stages=[stage.value for stage in FunnelStage],
        user_journeys=[journey.value for journey in UserJourney],
        group_by=[dimension.value for dimension in BenchmarkDimension],
        platform_labels=PLATFORM_LABELS,
        funnel_stage_labels=FUNNEL_STAGE_LABELS,
        user_journey_labels=USER_JOURNEY_LABELS,
    )


@router.get("/objectives", response_model=ObjectivesResponse)
async def get_objectives() -> ObjectivesResponse:
    """Objectives with a registered KPI calculator."""
    objectives = supported_objectives()
    return ObjectivesResponse(
        data=objectives,
        labels={objective: objective.replace("_", " ").title() for objective in objectives},
    )
