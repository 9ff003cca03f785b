"""
Engine services for the ad benchmark backend.

Every service except the repository is stateless, pure and I/O-free; the
API layer (adbench/api/) fetches rows through the repository and passes
them in.

Services:
- aggregates: MetricAggregate / MetricRow value types and pandas group-by
- currency: ExchangeRateSnapshot and CurrencyNormalizer
- results: results-resolution policy for cost-per-result
- calculators: ObjectiveCalculator strategies and get_calculator factory
- percentiles: percentile bands with optional IQR outlier removal
- classification: performance score, status and score explanation
- benchmarks: industry/account benchmarks and the overall summary
- insights: improvement/strength and industry-level insight templates
- forecast: expected-results calculator
- metrics: KPI summary, timeseries and spend breakdown
- repository: asyncpg reads of metric rows, accounts and exchange rates
"""

# =============================================================================
# Currency and KPI Calculation
# =============================================================================

from adbench.services.currency import CurrencyNormalizer, ExchangeRateSnapshot
from adbench.services.calculators import (
    KpiSet,
    ObjectiveCalculator,
    get_calculator,
    supported_objectives,
)
from adbench.services.results import resolve_results

# =============================================================================
# Benchmarks, Classification and Insights
# =============================================================================

from adbench.services.percentiles import InsufficientData, PercentileBand, compute_percentile_band
from adbench.services.classification import ClassifiedMetric, classify, classify_metric
from adbench.services.benchmarks import (
    build_account_benchmark,
    build_benchmark_summary,
    build_industry_benchmarks,
    compute_benchmarks,
)
from adbench.services.insights import generate_industry_insights, generate_insights
from adbench.services.forecast import calculate_expected_results

# =============================================================================
# Metric Views
# =============================================================================

from adbench.services.metrics import kpi_summary, spend_breakdown, timeseries

__all__ = [
    "ClassifiedMetric",
    "CurrencyNormalizer",
    "ExchangeRateSnapshot",
    "InsufficientData",
    "KpiSet",
    "ObjectiveCalculator",
    "PercentileBand",
    "build_account_benchmark",
    "build_benchmark_summary",
    "build_industry_benchmarks",
    "calculate_expected_results",
    "classify",
    "classify_metric",
    "compute_benchmarks",
    "compute_percentile_band",
    "generate_industry_insights",
    "generate_insights",
    "get_calculator",
    "kpi_summary",
    "resolve_results",
    "spend_breakdown",
    "supported_objectives",
    "timeseries",
]
