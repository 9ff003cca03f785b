"""
Insight generation from classified metrics and industry rankings.

Per-metric insights are a pure status -> template mapping:
- poor          -> improvement, priority high
- below_average -> improvement, priority medium
- excellent     -> strength, priority info
- average / good / no_data produce nothing

Industry-level insights come from the overall benchmark summary: at most one
"best performing" and one "needs improvement" statement, with a neutral
default when no ranking exists. Templates are data; this module holds no
calculation logic.
"""

from typing import Dict, Iterable, List, Optional

from adbench.models.enums import InsightPriority, InsightType, PerformanceStatus
from adbench.models.schemas import BenchmarkSummary, InsightItem, MetricComparison
from adbench.services.classification import ClassifiedMetric


# =============================================================================
# Templates
# =============================================================================

# {value} is the rounded actual value, {currency} the reporting currency
IMPROVEMENT_TEMPLATES: Dict[str, str] = {
    "ctr": "Your click-through rate of {value}% is below industry average. Consider improving ad creative and targeting.",
    "cpc": "Your cost-per-click of {currency} {value} is above industry average. Optimize keywords and bidding strategy.",
    "cpm": "Your cost per thousand impressions of {currency} {value} is high. Review audience targeting and ad relevance.",
    "cvr": "Your conversion rate of {value}% needs improvement. Focus on landing page optimization and offer clarity.",
    "cpl": "Your cost-per-lead of {currency} {value} is above benchmark. Improve lead quality and conversion funnel.",
}
DEFAULT_IMPROVEMENT_TEMPLATE = "Your {metric} performance could be improved based on industry benchmarks."

STRENGTH_TEMPLATES: Dict[str, str] = {
    "ctr": "Excellent click-through rate of {value}%! Your ads are highly engaging.",
    "cpc": "Great cost efficiency with CPC of {currency} {value}, well below industry average.",
    "cpm": "Efficient reach with CPM of {currency} {value}, showing good audience targeting.",
    "cvr": "Outstanding conversion rate of {value}%! Your funnel is highly optimized.",
    "cpl": "Excellent lead generation efficiency at {currency} {value} per lead.",
}
DEFAULT_STRENGTH_TEMPLATE = "Your {metric} performance is excellent compared to industry standards."

BEST_INDUSTRY_TEMPLATE = (
    "The {label} industry is showing the best overall performance with {accounts_count} accounts."
)
NEEDS_IMPROVEMENT_TEMPLATE = (
    "The {label} industry shows opportunities for improvement across {accounts_count} accounts."
)
NO_RANKING_MESSAGE = (
    "Set up industry classifications for your ad accounts to get detailed benchmark insights."
)

FALLBACK_INSIGHT_MESSAGES = (
    "Connect your advertising accounts to get personalized benchmark insights based on your actual performance data.",
    "Industry benchmarks are calculated dynamically from real account performance across multiple campaigns.",
)

INDUSTRY_LABELS: Dict[str, str] = {
    "automotive": "Automotive",
    "beauty_fitness": "Beauty & Fitness",
    "business_industrial": "Business & Industrial",
    "education": "Education",
    "finance_insurance": "Finance & Insurance",
    "food_beverage": "Food & Beverage",
    "health_medicine": "Health & Medicine",
    "real_estate": "Real Estate",
    "retail": "Retail",
    "technology": "Technology",
    "travel_tourism": "Travel & Tourism",
}

STATUS_INSIGHTS = {
    PerformanceStatus.POOR: (InsightType.IMPROVEMENT, InsightPriority.HIGH),
    PerformanceStatus.BELOW_AVERAGE: (InsightType.IMPROVEMENT, InsightPriority.MEDIUM),
    PerformanceStatus.EXCELLENT: (InsightType.STRENGTH, InsightPriority.INFO),
}


def industry_label(industry: str) -> str:
    """Display name for an industry slug, title-casing unknown slugs."""
    return INDUSTRY_LABELS.get(industry, industry.replace("_", " ").title())


# =============================================================================
# Per-metric Insights
# =============================================================================


def metric_insight(
    metric: str,
    actual: Optional[float],
    status: PerformanceStatus,
    currency: str = "SAR",
) -> Optional[InsightItem]:
    """Insight for one classified metric, or None for statuses without one."""
    mapping = STATUS_INSIGHTS.get(PerformanceStatus(status))
    if mapping is None:
        return None

    insight_type, priority = mapping
    if insight_type == InsightType.IMPROVEMENT:
        template = IMPROVEMENT_TEMPLATES.get(metric, DEFAULT_IMPROVEMENT_TEMPLATE)
    else:
        template = STRENGTH_TEMPLATES.get(metric, DEFAULT_STRENGTH_TEMPLATE)

    value = round(actual, 2) if actual is not None else "n/a"
    return InsightItem(
        type=insight_type,
        metric=metric,
        priority=priority,
        message=template.format(metric=metric, value=value, currency=currency),
    )


def generate_insights(
    classified_metrics: Iterable[ClassifiedMetric],
    currency: str = "SAR",
) -> List[InsightItem]:
    """Improvement and strength insights for a sequence of classified metrics."""
    insights = []
    for classified in classified_metrics:
        insight = metric_insight(classified.metric, classified.actual, classified.status, currency)
        if insight is not None:
            insights.append(insight)
    return insights


def generate_comparison_insights(
    metrics: Dict[str, MetricComparison],
    currency: str = "SAR",
) -> List[InsightItem]:
    """Same as generate_insights, for already serialized metric comparisons."""
    insights = []
    for metric, comparison in metrics.items():
        insight = metric_insight(metric, comparison.actual, comparison.status, currency)
        if insight is not None:
            insights.append(insight)
    return insights


# =============================================================================
# Industry Insights
# =============================================================================


def generate_industry_insights(summary: BenchmarkSummary) -> List[InsightItem]:
    """
    At most one best-performing and one needs-improvement insight, or a
    neutral default. Never returns an empty list.
    """
    insights: List[InsightItem] = []

    if summary.best_performing:
        best = summary.best_performing[0]
        insights.append(
            InsightItem(
                type=InsightType.SUCCESS,
                priority=InsightPriority.INFO,
                message=BEST_INDUSTRY_TEMPLATE.format(
                    label=industry_label(best.industry),
                    accounts_count=best.accounts_count,
                ),
            )
        )

    if summary.needs_improvement:
        worst = summary.needs_improvement[0]
        insights.append(
            InsightItem(
                type=InsightType.WARNING,
                priority=InsightPriority.MEDIUM,
                message=NEEDS_IMPROVEMENT_TEMPLATE.format(
                    label=industry_label(worst.industry),
                    accounts_count=worst.accounts_count,
                ),
            )
        )

    if not insights:
        insights.append(
            InsightItem(
                type=InsightType.INFO,
                priority=InsightPriority.INFO,
                message=NO_RANKING_MESSAGE,
            )
        )
    return insights


def fallback_insights() -> List[InsightItem]:
    return [
        InsightItem(type=InsightType.INFO, priority=InsightPriority.INFO, message=message)
        for message in FALLBACK_INSIGHT_MESSAGES
    ]
