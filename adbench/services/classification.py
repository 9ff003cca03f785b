"""
Performance classification of actual KPI values against percentile bands.

Maps an actual value and a group's PercentileBand to a 0-100 performance
score and a status in {poor, below_average, average, good, excellent},
honoring the metric's direction:

Higher is better (ctr, cvr, roas, ...):
- actual <= p25          -> poor
- p25 < actual <= p50    -> below_average
- p50 < actual <= p75    -> average, or good in the upper half of that span
- actual > p75           -> excellent

Lower is better (cpc, cpm, cpl, cpa, cost_per_call, cost_per_result):
- actual >= p75          -> poor
- p50 <= actual < p75    -> below_average
- p25 <= actual < p50    -> average, or good in the lower half of that span
- actual < p25           -> excellent

Performance score: linear position of actual between p25 and p75, clamped
to [0, 100] and inverted for lower-is-better metrics. A missing actual value
or band yields (None, no_data).
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union

from adbench.models.enums import MetricDirection, PerformanceStatus
from adbench.services.percentiles import BandResult, PercentileBand


# =============================================================================
# Metric Directions
# =============================================================================

LOWER_IS_BETTER_METRICS = frozenset({
    "cpc",
    "cpm",
    "cpl",
    "cpa",
    "cost_per_call",
    "cost_per_result",
})

# Percentage metrics, formatted with a % suffix in explanations
PERCENT_METRICS = frozenset({
    "ctr",
    "cvr",
    "vtr",
    "retention_rate",
    "call_conversion_rate",
})

# Ordering used to compare statuses independent of direction
STATUS_RANK: Dict[PerformanceStatus, int] = {
    PerformanceStatus.NO_DATA: -1,
    PerformanceStatus.POOR: 0,
    PerformanceStatus.BELOW_AVERAGE: 1,
    PerformanceStatus.AVERAGE: 2,
    PerformanceStatus.GOOD: 3,
    PerformanceStatus.EXCELLENT: 4,
}


def metric_direction(metric: str) -> MetricDirection:
    if metric in LOWER_IS_BETTER_METRICS:
        return MetricDirection.LOWER_IS_BETTER
    return MetricDirection.HIGHER_IS_BETTER


# =============================================================================
# Classification
# =============================================================================


@dataclass
class ClassifiedMetric:
    """
    One metric's actual value judged against its peer band.

    Created per request and never persisted.
    """
    metric: str
    actual: Optional[float]
    band: Optional[BandResult]
    status: PerformanceStatus
    direction: MetricDirection
    performance: Optional[float] = None
    explanation: Dict[str, object] = field(default_factory=dict)

    @property
    def has_band(self) -> bool:
        return isinstance(self.band, PercentileBand)


def performance_score(
    actual: float,
    band: PercentileBand,
    direction: MetricDirection,
) -> float:
    """
    Linear 0-100 score of ``actual`` between p25 and p75.

    Monotonic in ``actual``: non-decreasing for higher-is-better metrics and
    non-increasing for lower-is-better metrics.
    """
    low, high = band.p25, band.p75
    if high <= low:
        if direction == MetricDirection.LOWER_IS_BETTER:
            return 100.0 if actual < low else 0.0
        return 100.0 if actual > high else 0.0

    position = (actual - low) / (high - low) * 100.0
    if direction == MetricDirection.LOWER_IS_BETTER:
        position = 100.0 - position
    return max(0.0, min(100.0, position))


def classify_status(
    actual: float,
    band: PercentileBand,
    direction: MetricDirection,
) -> PerformanceStatus:
    p25, p50, p75 = band.p25, band.p50, band.p75

    if direction == MetricDirection.LOWER_IS_BETTER:
        if actual >= p75:
            return PerformanceStatus.POOR
        if actual >= p50:
            return PerformanceStatus.BELOW_AVERAGE
        if actual >= p25:
            midpoint = (p25 + p50) / 2
            return PerformanceStatus.GOOD if actual < midpoint else PerformanceStatus.AVERAGE
        return PerformanceStatus.EXCELLENT

    if actual <= p25:
        return PerformanceStatus.POOR
    if actual <= p50:
        return PerformanceStatus.BELOW_AVERAGE
    if actual <= p75:
        midpoint = (p50 + p75) / 2
        return PerformanceStatus.GOOD if actual > midpoint else PerformanceStatus.AVERAGE
    return PerformanceStatus.EXCELLENT


def classify(
    actual: Optional[float],
    band: Optional[BandResult],
    direction: Union[MetricDirection, str],
) -> Tuple[Optional[float], PerformanceStatus]:
    """
    Classify ``actual`` against ``band``.

    Args:
        actual: The account or group KPI value, or None when unavailable.
        band: PercentileBand, InsufficientData marker, or None.
        direction: MetricDirection (or its string value).

    Returns:
        Tuple of (performance score 0-100 or None, PerformanceStatus).
    """
    if actual is None or not isinstance(band, PercentileBand):
        return None, PerformanceStatus.NO_DATA

    direction = MetricDirection(direction)
    return (
        performance_score(actual, band, direction),
        classify_status(actual, band, direction),
    )


def classify_metric(
    metric: str,
    actual: Optional[float],
    band: Optional[BandResult],
    currency: str = "SAR",
) -> ClassifiedMetric:
    """Classify one named metric and attach its score explanation."""
    direction = metric_direction(metric)
    performance, status = classify(actual, band, direction)
    return ClassifiedMetric(
        metric=metric,
        actual=actual,
        band=band,
        status=status,
        direction=direction,
        performance=performance,
        explanation=explain_score(metric, actual, band, performance, currency),
    )


# =============================================================================
# Score Explanation
# =============================================================================


def format_metric_value(metric: str, value: float, currency: str = "SAR") -> str:
    if metric in PERCENT_METRICS:
        return f"{round(value, 2)}%"
    if metric in LOWER_IS_BETTER_METRICS:
        return f"{currency} {round(value, 2)}"
    return f"{round(value, 2)}"


def explain_score(
    metric: str,
    actual: Optional[float],
    band: Optional[BandResult],
    score: Optional[float],
    currency: str = "SAR",
) -> Dict[str, object]:
    """
    Human-readable description of how the performance score was derived.

    Returns a dict with ``explanation`` and ``formula`` keys, plus a
    ``benchmark_context`` block when a band is available.
    """
    if actual is None or score is None or not isinstance(band, PercentileBand):
        return {
            "explanation": "No data available for calculation",
            "formula": "N/A",
        }

    def fmt(value: float) -> str:
        return format_metric_value(metric, value, currency)

    low, high = band.p25, band.p75
    lower_is_better = metric_direction(metric) == MetricDirection.LOWER_IS_BETTER
    actual_r, low_r, high_r = round(actual, 2), round(low, 2), round(high, 2)

    if lower_is_better:
        explanation = f"Lower is better for {metric}. "
        if actual < low:
            explanation += f"Your {fmt(actual)} is below the 25th percentile ({fmt(low)}), which is excellent."
            formula = "Score = 100 (excellent performance)"
        elif actual >= high:
            explanation += f"Your {fmt(actual)} is at or above the 75th percentile ({fmt(high)}), which needs improvement."
            formula = "Score = 0 (poor performance)"
        else:
            explanation += f"Your {fmt(actual)} is between the 25th percentile ({fmt(low)}) and 75th percentile ({fmt(high)})."
            formula = f"Score = 100 - (({actual_r} - {low_r}) / ({high_r} - {low_r})) x 100 = {round(score, 1)}"
    else:
        explanation = f"Higher is better for {metric}. "
        if actual > high:
            explanation += f"Your {fmt(actual)} is above the 75th percentile ({fmt(high)}), which is excellent."
            formula = "Score = 100 (excellent performance)"
        elif actual <= low:
            explanation += f"Your {fmt(actual)} is at or below the 25th percentile ({fmt(low)}), which needs improvement."
            formula = "Score = 0 (poor performance)"
        else:
            explanation += f"Your {fmt(actual)} is between the 25th percentile ({fmt(low)}) and 75th percentile ({fmt(high)})."
            formula = f"Score = (({actual_r} - {low_r}) / ({high_r} - {low_r})) x 100 = {round(score, 1)}"

    return {
        "explanation": explanation,
        "formula": formula,
        "benchmark_context": {
            "your_value": fmt(actual),
            "industry_25th_percentile": fmt(low),
            "industry_median": fmt(band.p50),
            "industry_75th_percentile": fmt(high),
            "interpretation": "Lower values are better" if lower_is_better else "Higher values are better",
        },
    }
