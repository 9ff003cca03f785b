"""
Pydantic request/response models for the ad benchmark backend.

This module provides type-safe serialization for every API contract: KPI
summaries, timeseries, spend breakdowns, industry/account benchmarks, the
overall benchmark summary, insights and the expected-results calculator.
The JSON shapes are the de facto contract consumed by the dashboard.

All models use Pydantic v2 syntax with field descriptions.
"""

from datetime import date as DateType
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from adbench.models.enums import (
    InsightPriority,
    InsightType,
    MetricDirection,
    PerformanceStatus,
)


# =============================================================================
# Shared Models
# =============================================================================


class DateRange(BaseModel):
    """Inclusive date range; serialized as {"from": ..., "to": ...}."""
    model_config = ConfigDict(populate_by_name=True)

    from_: DateType = Field(..., alias="from", description="First day (inclusive)")
    to: DateType = Field(..., description="Last day (inclusive)")


# =============================================================================
# KPI Summary / Timeseries / Spend Breakdown
# =============================================================================


class CurrencyBreakdownItem(BaseModel):
    """KPIs computed over the rows of a single source currency."""
    currency: str = Field(..., description="Source currency code of the accounts")
    kpis: Dict[str, float] = Field(default_factory=dict)


class KpiSummaryResponse(BaseModel):
    """
    Objective KPIs over a date range.

    Monetary KPIs are in ``currency`` (the reporting currency); the currency
    breakdown lists KPIs per source currency after normalization.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "objective": "leads",
                "date_range": {"from": "2025-01-01", "to": "2025-01-31"},
                "kpis": {"spend": 500.0, "cpl": 16.67, "leads": 30, "cvr": 12.0},
                "primary_kpis": ["spend", "cpl", "leads", "cvr"],
                "secondary_kpis": ["ctr", "cpc", "cpm"],
                "currency": "SAR",
                "currency_breakdown": [],
            }
        }
    )

    objective: str
    date_range: DateRange
    kpis: Dict[str, float] = Field(default_factory=dict)
    primary_kpis: List[str] = Field(default_factory=list)
    secondary_kpis: List[str] = Field(default_factory=list)
    currency: str
    currency_breakdown: List[CurrencyBreakdownItem] = Field(default_factory=list)


class TimeseriesPoint(BaseModel):
    """One period of a KPI timeseries."""
    period: Optional[Union[DateType, int, str]] = Field(
        default=None,
        description="Date, account id, campaign name or platform depending on group_by",
    )
    value: float = 0.0
    raw_metrics: Dict[str, float] = Field(default_factory=dict)


class TimeseriesResponse(BaseModel):
    metric: str
    objective: str
    group_by: str
    date_range: DateRange
    currency: str
    data: List[TimeseriesPoint] = Field(default_factory=list)


class SpendBreakdownItem(BaseModel):
    """Spend, daily average and cost per result for one account or campaign."""
    account_id: int
    account_name: str
    campaign_id: Optional[int] = None
    campaign_name: Optional[str] = None
    platform: Optional[str] = None
    original_currency: Optional[str] = None
    total_spend: float = Field(0.0, description="Total spend in the reporting currency")
    daily_average: float = Field(0.0, description="Total spend / distinct active days")
    active_days: int = 0
    results: int = 0
    cost_per_result: float = 0.0


class SpendBreakdownResponse(BaseModel):
    group_by: str
    date_range: DateRange
    currency: str
    currency_note: str
    data: List[SpendBreakdownItem] = Field(default_factory=list)


# =============================================================================
# Benchmarks
# =============================================================================


class BenchmarkRange(BaseModel):
    """
    Percentile band of a metric across a peer group.

    min/avg/max are the 25th/50th/75th percentiles.
    """
    min: float
    avg: float
    max: float
    data_points: int = 0
    outliers_removed: int = 0
    lowest: Optional[float] = None
    highest: Optional[float] = None


class MetricComparison(BaseModel):
    """Actual value vs. benchmark band for one metric."""
    actual: Optional[float] = None
    benchmark: Optional[BenchmarkRange] = None
    performance: Optional[float] = Field(
        default=None, ge=0, le=100, description="0-100 position within the band"
    )
    status: PerformanceStatus = PerformanceStatus.NO_DATA
    direction: MetricDirection = MetricDirection.HIGHER_IS_BETTER
    calculation_details: Dict[str, Any] = Field(default_factory=dict)


class IndustryBenchmark(BaseModel):
    """Benchmark comparison for one industry group (optionally refined)."""
    industry: str
    group: Dict[str, Any] = Field(
        default_factory=dict,
        description="Dimension values identifying the group (industry plus refinements)",
    )
    accounts_count: int = 0
    account_names: List[str] = Field(default_factory=list)
    total_spend: float = 0.0
    total_impressions: int = 0
    total_clicks: int = 0
    total_leads: int = 0
    metrics: Dict[str, MetricComparison] = Field(default_factory=dict)


class IndustryBenchmarksResponse(BaseModel):
    data: Dict[str, IndustryBenchmark] = Field(default_factory=dict)
    date_range: DateRange
    group_by: List[str] = Field(default_factory=lambda: ["industry"])
    fallback: bool = False
    message: Optional[str] = None


class AccountBenchmark(BaseModel):
    """One account's KPIs classified against its industry's bands."""
    account_id: int
    account_name: str
    industry: Optional[str] = None
    total_spend: float = 0.0
    total_impressions: int = 0
    total_clicks: int = 0
    total_leads: int = 0
    metrics: Dict[str, MetricComparison] = Field(default_factory=dict)
    data_points: int = Field(0, description="Sum of band sample sizes")
    message: Optional[str] = None


class AccountBenchmarkResponse(BaseModel):
    data: AccountBenchmark
    date_range: DateRange


class IndustryRanking(BaseModel):
    industry: str
    score: Optional[float] = None
    accounts_count: int = 0


class BenchmarkSummary(BaseModel):
    """Totals across industries plus best and worst performers."""
    total_industries: int = 0
    total_accounts: int = 0
    total_spend: float = 0.0
    best_performing: List[IndustryRanking] = Field(default_factory=list)
    needs_improvement: List[IndustryRanking] = Field(default_factory=list)
    industry_breakdown: Dict[str, IndustryBenchmark] = Field(default_factory=dict)


class BenchmarkSummaryResponse(BaseModel):
    data: BenchmarkSummary
    date_range: DateRange
    fallback: bool = False
    message: Optional[str] = None


# =============================================================================
# Insights
# =============================================================================


class InsightItem(BaseModel):
    """A human-readable recommendation or strength statement."""
    type: InsightType
    message: str
    priority: InsightPriority
    metric: Optional[str] = None


class InsightsResponse(BaseModel):
    insights: List[InsightItem] = Field(default_factory=list)
    date_range: DateRange
    fallback: bool = False
    message: Optional[str] = None


# =============================================================================
# Expected Results Calculator
# =============================================================================


class ResultEstimate(BaseModel):
    value: int
    calculation: str
    label: Optional[str] = None


class ScenarioPrediction(BaseModel):
    """Projected delivery for one performance scenario."""
    impressions: ResultEstimate
    clicks: ResultEstimate
    primary_result: ResultEstimate
    metrics: Dict[str, float] = Field(
        default_factory=dict, description="Scenario ctr/cpc/cpm/cvr/cpl"
    )
    cost_per_result: Dict[str, float] = Field(default_factory=dict)


class ExpectedResultsResponse(BaseModel):
    input: Dict[str, Any]
    currency: str
    predictions: Dict[str, ScenarioPrediction]
    benchmark_info: Dict[str, Any] = Field(default_factory=dict)
    disclaimers: List[str] = Field(default_factory=list)


# =============================================================================
# Static Reference Data
# =============================================================================


class MethodologyResponse(BaseModel):
    calculation_method: str = "dynamic"
    description: str
    methodology: Dict[str, Any]
    date_range: Optional[DateRange] = None


class FilterOptionsResponse(BaseModel):
    platforms: List[str]
    funnel_stages: List[str]
    user_journeys: List[str]
    group_by: List[str]
    platform_labels: Dict[str, str]
    funnel_stage_labels: Dict[str, str]
    user_journey_labels: Dict[str, str]


class ObjectivesResponse(BaseModel):
    data: List[str]
    labels: Dict[str, str] = Field(default_factory=dict)
