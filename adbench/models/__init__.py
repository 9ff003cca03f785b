"""
Package initialization file for adbench models.

Re-exports the enumerations and Pydantic schemas so other modules can import
them from adbench.models directly:

    from adbench.models import Objective, KpiSummaryResponse
"""

# =============================================================================
# Enums
# =============================================================================

from adbench.models.enums import (
    BenchmarkDimension,
    FunnelStage,
    InsightPriority,
    InsightType,
    MetricDirection,
    Objective,
    PerformanceStatus,
    Platform,
    SpendGroupBy,
    TimeseriesGroupBy,
    TimeseriesMetric,
    UserJourney,
)

# =============================================================================
# Schemas
# =============================================================================

from adbench.models.schemas import (
    AccountBenchmark,
    AccountBenchmarkResponse,
    BenchmarkRange,
    BenchmarkSummary,
    BenchmarkSummaryResponse,
    CurrencyBreakdownItem,
    DateRange,
    ExpectedResultsResponse,
    FilterOptionsResponse,
    IndustryBenchmark,
    IndustryBenchmarksResponse,
    IndustryRanking,
    InsightItem,
    InsightsResponse,
    KpiSummaryResponse,
    MethodologyResponse,
    MetricComparison,
    ObjectivesResponse,
    ResultEstimate,
    ScenarioPrediction,
    SpendBreakdownItem,
    SpendBreakdownResponse,
    TimeseriesPoint,
    TimeseriesResponse,
)

__all__ = [
    # Enums
    "BenchmarkDimension",
    "FunnelStage",
    "InsightPriority",
    "InsightType",
    "MetricDirection",
    "Objective",
    "PerformanceStatus",
    "Platform",
    "SpendGroupBy",
    "TimeseriesGroupBy",
    "TimeseriesMetric",
    "UserJourney",
    # Schemas
    "AccountBenchmark",
    "AccountBenchmarkResponse",
    "BenchmarkRange",
    "BenchmarkSummary",
    "BenchmarkSummaryResponse",
    "CurrencyBreakdownItem",
    "DateRange",
    "ExpectedResultsResponse",
    "FilterOptionsResponse",
    "IndustryBenchmark",
    "IndustryBenchmarksResponse",
    "IndustryRanking",
    "InsightItem",
    "InsightsResponse",
    "KpiSummaryResponse",
    "MethodologyResponse",
    "MetricComparison",
    "ObjectivesResponse",
    "ResultEstimate",
    "ScenarioPrediction",
    "SpendBreakdownItem",
    "SpendBreakdownResponse",
    "TimeseriesPoint",
    "TimeseriesResponse",
]
