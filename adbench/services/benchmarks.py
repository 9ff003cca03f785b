"""
Benchmark aggregation over the live account population.

Groups accounts by classification dimensions (industry is mandatory;
platform, funnel_stage, user_journey, sub_industry and has_pixel_data are
optional refinements), collects one KPI sample per account and computes
25th/50th/75th percentile bands per metric per group.

Rules:
- Only accounts with spend > 0 contribute samples
- A KPI of 0 (zero denominator) contributes no sample
- A metric with fewer than ``min_accounts`` samples gets InsufficientData
  (status no_data), never a single-point band
- Groups are independent; the result mapping is assembled only after every
  group has been computed

Key Functions:
- compute_benchmarks: group key -> metric -> PercentileBand | InsufficientData
- build_industry_benchmarks: per-group comparison of the group's own KPIs
- build_account_benchmark: one account against its industry bands
- build_benchmark_summary: totals plus top/bottom three industries
- fallback_industry_benchmarks / fallback_benchmark_summary: static datasets
  served when the live computation fails
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from adbench.models.enums import BenchmarkDimension, PerformanceStatus
from adbench.models.schemas import (
    AccountBenchmark,
    BenchmarkRange,
    BenchmarkSummary,
    IndustryBenchmark,
    IndustryRanking,
    MetricComparison,
)
from adbench.services.aggregates import AccountMetrics, MetricAggregate, sum_aggregates
from adbench.services.calculators import ObjectiveCalculator, get_calculator
from adbench.services.classification import ClassifiedMetric, classify_metric, metric_direction
from adbench.services.percentiles import (
    BandResult,
    InsufficientData,
    PercentileBand,
    compute_percentile_band,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

BENCHMARK_METRICS: Tuple[str, ...] = ("ctr", "cpc", "cpm", "cvr", "cpl")

# Benchmarks are lead-generation oriented: cvr = leads / clicks
DEFAULT_BENCHMARK_OBJECTIVE = "leads"

GROUP_KEY_SEPARATOR = "|"

GroupKey = Tuple[Any, ...]
GroupBands = Dict[str, BandResult]


# =============================================================================
# Grouping
# =============================================================================


def normalize_group_by(group_by: Optional[Iterable[Any]] = None) -> List[str]:
    """
    Return the grouping dimensions with industry first and no duplicates.

    Raises:
        ValueError: If an unknown dimension is requested.
    """
    dimensions = [BenchmarkDimension.INDUSTRY.value]
    for dimension in group_by or ():
        name = BenchmarkDimension(getattr(dimension, "value", dimension)).value
        if name not in dimensions:
            dimensions.append(name)
    return dimensions


def group_key(account: AccountMetrics, dimensions: Sequence[str]) -> GroupKey:
    return tuple(account.dimension(name) for name in dimensions)


def format_group_key(key: GroupKey) -> str:
    """Render a group key as "industry|platform|..." for response mappings."""
    return GROUP_KEY_SEPARATOR.join("" if value is None else str(value) for value in key)


def group_accounts(
    accounts: Iterable[AccountMetrics],
    dimensions: Sequence[str],
) -> Dict[GroupKey, List[AccountMetrics]]:
    """Group accounts by dimension values; accounts without an industry are skipped."""
    groups: Dict[GroupKey, List[AccountMetrics]] = defaultdict(list)
    for account in accounts:
        if not account.dimension(BenchmarkDimension.INDUSTRY.value):
            continue
        groups[group_key(account, dimensions)].append(account)
    return dict(sorted(groups.items(), key=lambda item: format_group_key(item[0])))


# =============================================================================
# Percentile Bands
# =============================================================================


def account_samples(
    accounts: Sequence[AccountMetrics],
    metric: str,
    calculator: ObjectiveCalculator,
) -> List[float]:
    """One KPI sample per account with spend > 0."""
    return [
        calculator.kpi_value(metric, [account.aggregate])
        for account in accounts
        if account.aggregate.spend > 0
    ]


def compute_group_bands(
    accounts: Sequence[AccountMetrics],
    metrics: Sequence[str] = BENCHMARK_METRICS,
    calculator: Optional[ObjectiveCalculator] = None,
    min_accounts: int = 2,
    outlier_filtering: bool = False,
) -> GroupBands:
    """Percentile band (or InsufficientData) per metric for one peer group."""
    calculator = calculator or get_calculator(DEFAULT_BENCHMARK_OBJECTIVE)
    return {
        metric: compute_percentile_band(
            account_samples(accounts, metric, calculator),
            metric=metric,
            min_samples=min_accounts,
            outlier_filtering=outlier_filtering,
        )
        for metric in metrics
    }


def compute_benchmarks(
    accounts: Sequence[AccountMetrics],
    group_by: Optional[Iterable[Any]] = None,
    metrics: Sequence[str] = BENCHMARK_METRICS,
    min_accounts: int = 2,
    objective: str = DEFAULT_BENCHMARK_OBJECTIVE,
    outlier_filtering: bool = False,
) -> Dict[GroupKey, GroupBands]:
    """
    Compute percentile bands per metric per peer group.

    Args:
        accounts: One AccountMetrics per account, aggregated over the
            benchmark date range and already in the reporting currency.
        group_by: Dimensions to group by; industry is always included.
        metrics: KPI names to benchmark.
        min_accounts: Minimum contributing accounts for a band.
        objective: Objective whose calculator derives the per-account KPIs.
        outlier_filtering: Apply IQR outlier removal before percentiles.

    Returns:
        Mapping of group key tuple (ordered like the normalized group_by)
        to a mapping of metric name -> PercentileBand or InsufficientData.

    Raises:
        InvalidObjective: If ``objective`` has no calculator.
    """
    dimensions = normalize_group_by(group_by)
    calculator = get_calculator(objective)
    groups = group_accounts(accounts, dimensions)

    bands = {
        key: compute_group_bands(
            members,
            metrics=metrics,
            calculator=calculator,
            min_accounts=min_accounts,
            outlier_filtering=outlier_filtering,
        )
        for key, members in groups.items()
    }
    logger.info(
        f"Computed benchmarks for {len(bands)} groups from {len(accounts)} accounts "
        f"(group_by={dimensions})"
    )
    return bands


# =============================================================================
# Comparisons
# =============================================================================


def to_benchmark_range(band: Optional[BandResult]) -> Optional[BenchmarkRange]:
    if not isinstance(band, PercentileBand):
        return None
    return BenchmarkRange(
        min=band.p25,
        avg=band.p50,
        max=band.p75,
        data_points=band.sample_size,
        outliers_removed=band.outliers_removed,
        lowest=band.lowest,
        highest=band.highest,
    )


def to_metric_comparison(classified: ClassifiedMetric) -> MetricComparison:
    return MetricComparison(
        actual=classified.actual,
        benchmark=to_benchmark_range(classified.band),
        performance=classified.performance,
        status=classified.status,
        direction=classified.direction,
        calculation_details=classified.explanation,
    )


def classify_aggregate(
    aggregate: MetricAggregate,
    bands: Mapping[str, BandResult],
    calculator: ObjectiveCalculator,
    currency: str = "SAR",
) -> Dict[str, ClassifiedMetric]:
    """
    Classify the KPIs of ``aggregate`` against ``bands``.

    A KPI of 0 is treated as unavailable (no denominator) and classifies
    as no_data.
    """
    classified = {}
    for metric, band in bands.items():
        value = calculator.kpi_value(metric, [aggregate])
        actual = value if value else None
        classified[metric] = classify_metric(metric, actual, band, currency)
    return classified


def build_industry_benchmarks(
    accounts: Sequence[AccountMetrics],
    group_by: Optional[Iterable[Any]] = None,
    metrics: Sequence[str] = BENCHMARK_METRICS,
    min_accounts: int = 2,
    objective: str = DEFAULT_BENCHMARK_OBJECTIVE,
    outlier_filtering: bool = False,
    currency: str = "SAR",
) -> Dict[str, IndustryBenchmark]:
    """
    Compare every peer group's own KPIs with the group's bands.

    The group's actual value for a metric is the KPI of the group's summed
    aggregate. Groups whose population is too small still appear, with
    every metric reported as no_data.

    Returns:
        Mapping of formatted group key -> IndustryBenchmark.
    """
    dimensions = normalize_group_by(group_by)
    calculator = get_calculator(objective)
    groups = group_accounts(accounts, dimensions)
    bands = compute_benchmarks(
        accounts,
        group_by=dimensions,
        metrics=metrics,
        min_accounts=min_accounts,
        objective=objective,
        outlier_filtering=outlier_filtering,
    )

    results: Dict[str, IndustryBenchmark] = {}
    for key, members in groups.items():
        totals = sum_aggregates((account.aggregate for account in members), currency=currency)
        classified = classify_aggregate(totals, bands[key], calculator, currency)
        results[format_group_key(key)] = IndustryBenchmark(
            industry=str(key[0]),
            group=dict(zip(dimensions, key)),
            accounts_count=len(members),
            account_names=[account.account_name for account in members],
            total_spend=totals.spend,
            total_impressions=totals.impressions,
            total_clicks=totals.clicks,
            total_leads=totals.leads,
            metrics={metric: to_metric_comparison(item) for metric, item in classified.items()},
        )
    return results


def build_account_benchmark(
    account: AccountMetrics,
    population: Sequence[AccountMetrics],
    metrics: Sequence[str] = BENCHMARK_METRICS,
    min_accounts: int = 2,
    objective: str = DEFAULT_BENCHMARK_OBJECTIVE,
    outlier_filtering: bool = False,
    currency: str = "SAR",
) -> AccountBenchmark:
    """
    Classify one account's KPIs against its industry's bands.

    Accounts without an industry, or whose industry lacks a population,
    get every metric as no_data and an explanatory message.
    """
    calculator = get_calculator(objective)
    industry = account.dimension(BenchmarkDimension.INDUSTRY.value)
    aggregate = account.aggregate
    message = None

    if industry:
        peers = [p for p in population if p.dimension(BenchmarkDimension.INDUSTRY.value) == industry]
        bands = compute_group_bands(
            peers,
            metrics=metrics,
            calculator=calculator,
            min_accounts=min_accounts,
            outlier_filtering=outlier_filtering,
        )
        if not any(isinstance(band, PercentileBand) for band in bands.values()):
            message = f"Not enough data to calculate benchmarks for {industry} industry"
    else:
        bands = {metric: InsufficientData(sample_size=0, required=min_accounts) for metric in metrics}
        message = "Account industry not set"

    classified = classify_aggregate(aggregate, bands, calculator, currency)
    return AccountBenchmark(
        account_id=account.account_id,
        account_name=account.account_name,
        industry=industry,
        total_spend=aggregate.spend,
        total_impressions=aggregate.impressions,
        total_clicks=aggregate.clicks,
        total_leads=aggregate.leads,
        metrics={metric: to_metric_comparison(item) for metric, item in classified.items()},
        data_points=sum(band.sample_size for band in bands.values() if isinstance(band, PercentileBand)),
        message=message,
    )


# =============================================================================
# Overall Summary
# =============================================================================


def mean_performance(benchmark: IndustryBenchmark) -> Optional[float]:
    """Mean performance score over metrics that have one, or None."""
    scores = [m.performance for m in benchmark.metrics.values() if m.performance is not None]
    if not scores:
        return None
    return float(np.mean(scores))


def build_benchmark_summary(
    industry_benchmarks: Mapping[str, IndustryBenchmark],
    top_n: int = 3,
) -> BenchmarkSummary:
    """
    Totals across industries plus the top and bottom ``top_n`` industries
    ranked by mean performance score.

    Industries without any scored metric are counted in the totals but not
    ranked.
    """
    rankings: List[IndustryRanking] = []
    total_accounts = 0
    total_spend = 0.0

    for benchmark in industry_benchmarks.values():
        total_accounts += benchmark.accounts_count
        total_spend += benchmark.total_spend
        score = mean_performance(benchmark)
        if score is not None:
            rankings.append(
                IndustryRanking(
                    industry=benchmark.industry,
                    score=score,
                    accounts_count=benchmark.accounts_count,
                )
            )

    # Stable sort keeps input order for equal scores
    rankings.sort(key=lambda ranking: ranking.score, reverse=True)

    return BenchmarkSummary(
        total_industries=len(industry_benchmarks),
        total_accounts=total_accounts,
        total_spend=total_spend,
        best_performing=rankings[:top_n],
        needs_improvement=list(reversed(rankings))[:top_n],
        industry_breakdown=dict(industry_benchmarks),
    )


# =============================================================================
# Static Fallback Datasets
# =============================================================================

# Served with fallback=true when the live computation fails
FALLBACK_BANDS: Dict[str, Dict[str, Tuple[float, float, float]]] = {
    "technology": {
        "ctr": (1.2, 2.1, 3.8),
        "cpc": (0.8, 1.5, 2.2),
        "cvr": (8.0, 12.5, 18.0),
    },
    "retail": {
        "ctr": (1.0, 1.8, 3.2),
        "cpc": (0.6, 1.2, 1.8),
        "cvr": (6.0, 10.0, 15.0),
    },
}

FALLBACK_TOTAL_INDUSTRIES = 8


def fallback_industry_benchmarks() -> Dict[str, IndustryBenchmark]:
    results = {}
    for industry, metrics in FALLBACK_BANDS.items():
        results[industry] = IndustryBenchmark(
            industry=industry,
            group={BenchmarkDimension.INDUSTRY.value: industry},
            metrics={
                metric: MetricComparison(
                    benchmark=BenchmarkRange(min=low, avg=mid, max=high),
                    status=PerformanceStatus.NO_DATA,
                    direction=metric_direction(metric),
                )
                for metric, (low, mid, high) in metrics.items()
            },
        )
    return results


def fallback_benchmark_summary() -> BenchmarkSummary:
    return BenchmarkSummary(
        total_industries=FALLBACK_TOTAL_INDUSTRIES,
        total_accounts=0,
        total_spend=0.0,
        best_performing=[IndustryRanking(industry="technology", accounts_count=0)],
        needs_improvement=[IndustryRanking(industry="retail", accounts_count=0)],
        industry_breakdown={},
    )
