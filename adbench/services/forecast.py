"""
Expected-results calculator.

Projects impressions, clicks and the objective's primary result for a given
spend from an industry's median (p50) benchmark values. Four performance
scenarios scale the medians by fixed multipliers; a metric without a band
falls back to a static default.

    impressions = spend / cpm x 1000
    clicks      = max(impressions x ctr / 100, spend / cpc)
    results     = objective-specific, see RESULT_RULES
"""

import logging
from typing import Callable, Dict, Mapping, Optional, Tuple

from adbench.exceptions import ForecastUnavailable
from adbench.models.schemas import (
    DateRange,
    ExpectedResultsResponse,
    ResultEstimate,
    ScenarioPrediction,
)
from adbench.services.calculators import safe_divide
from adbench.services.percentiles import BandResult, PercentileBand


logger = logging.getLogger(__name__)


# =============================================================================
# Scenario Parameters
# =============================================================================

SCENARIO_MULTIPLIERS: Dict[str, Dict[str, float]] = {
    "poor": {"ctr": 0.3, "cpc": 1.7, "cpm": 1.7, "cvr": 0.3, "cpl": 1.7},
    "average": {"ctr": 0.65, "cpc": 1.3, "cpm": 1.3, "cvr": 0.65, "cpl": 1.3},
    "good": {"ctr": 0.85, "cpc": 0.7, "cpm": 0.7, "cvr": 0.85, "cpl": 0.7},
    "excellent": {"ctr": 1.2, "cpc": 0.5, "cpm": 0.5, "cvr": 1.2, "cpl": 0.5},
}

# Used as-is (no multiplier) when the industry has no band for the metric
DEFAULT_METRIC_VALUES: Dict[str, float] = {
    "ctr": 1.5,
    "cpc": 1.0,
    "cpm": 10.0,
    "cvr": 3.0,
    "cpl": 30.0,
}

OBJECTIVE_LABELS: Dict[str, str] = {
    "leads": "Leads",
    "messages": "Messages",
    "calls": "Phone Calls",
    "sales": "Sales",
    "conversions": "Conversions",
    "catalog_sales": "Catalog Sales",
    "store_visits": "Store Visits",
    "traffic": "Website Visits",
    "link_clicks": "Link Clicks",
    "engagement": "Engagements",
    "video_views": "Video Views",
    "page_likes": "Page Likes",
    "awareness": "People Reached",
    "reach": "People Reached",
    "impressions": "Impressions",
    "app_installs": "App Installs",
    "app_events": "App Events",
}

FORECAST_OBJECTIVES: Tuple[str, ...] = tuple(OBJECTIVE_LABELS)

DISCLAIMERS = (
    "These are estimates based on industry averages from your actual account data",
    "Actual results may vary based on targeting, creative quality, competition, and market conditions",
    "Performance scenarios represent different levels of campaign optimization",
)

VIDEO_VIEWS_PER_CLICK = 2.5
ENGAGEMENT_RATE = 0.02
REACH_RATE = 0.7


def objective_label(objective: str) -> str:
    return OBJECTIVE_LABELS.get(objective, "Results")


def _fmt(value: float) -> str:
    return f"{round(value):,}"


# =============================================================================
# Objective Result Rules
# =============================================================================

# (impressions, clicks, metrics) -> (value, calculation text)
ResultRule = Callable[[float, float, Dict[str, float]], Tuple[float, str]]


def _conversions_rule(unit: str) -> ResultRule:
    def rule(impressions: float, clicks: float, metrics: Dict[str, float]) -> Tuple[float, str]:
        value = clicks * metrics["cvr"] / 100
        return value, f"{_fmt(clicks)} clicks x {round(metrics['cvr'], 2)}% {unit} = {_fmt(value)}"
    return rule


def _clicks_rule(impressions, clicks, metrics):
    ctr = safe_divide(clicks, impressions, 100.0)
    return clicks, f"{_fmt(impressions)} impressions x {round(ctr, 2)}% CTR = {_fmt(clicks)}"


def _video_views_rule(impressions, clicks, metrics):
    value = clicks * VIDEO_VIEWS_PER_CLICK
    return value, f"{_fmt(clicks)} engagements x {VIDEO_VIEWS_PER_CLICK} view rate = {_fmt(value)}"


def _engagement_rule(impressions, clicks, metrics):
    value = impressions * ENGAGEMENT_RATE
    return value, f"{_fmt(impressions)} impressions x 2% engagement rate = {_fmt(value)}"


def _reach_rule(impressions, clicks, metrics):
    value = impressions * REACH_RATE
    return value, f"{_fmt(impressions)} impressions x 70% reach rate = {_fmt(value)}"


RESULT_RULES: Dict[str, ResultRule] = {
    "leads": _conversions_rule("CVR"),
    "messages": _conversions_rule("CVR"),
    "calls": _conversions_rule("CVR"),
    "sales": _conversions_rule("conversion rate"),
    "conversions": _conversions_rule("conversion rate"),
    "catalog_sales": _conversions_rule("conversion rate"),
    "app_installs": _conversions_rule("install rate"),
    "app_events": _conversions_rule("install rate"),
    "traffic": _clicks_rule,
    "link_clicks": _clicks_rule,
    "video_views": _video_views_rule,
    "engagement": _engagement_rule,
    "page_likes": _engagement_rule,
    "awareness": _reach_rule,
    "reach": _reach_rule,
    "impressions": _reach_rule,
}

# Labels that differ from objective_label() for the same rule
RESULT_LABEL_OVERRIDES: Dict[str, str] = {
    "traffic": "Website Visits",
    "link_clicks": "Website Visits",
    "impressions": "People Reached",
}


# =============================================================================
# Scenario Prediction
# =============================================================================


def scenario_metrics(
    bands: Mapping[str, BandResult],
    multipliers: Mapping[str, float],
) -> Dict[str, float]:
    """Median band value x multiplier per metric, or the static default."""
    metrics = {}
    for metric, default in DEFAULT_METRIC_VALUES.items():
        band = bands.get(metric)
        if isinstance(band, PercentileBand):
            metrics[metric] = band.p50 * multipliers[metric]
        else:
            metrics[metric] = default
    return metrics


def predict_scenario(
    spend: float,
    bands: Mapping[str, BandResult],
    multipliers: Mapping[str, float],
    objective: str,
    currency: str = "SAR",
) -> ScenarioPrediction:
    metrics = scenario_metrics(bands, multipliers)

    impressions = safe_divide(spend, metrics["cpm"], 1000.0)
    clicks = max(impressions * metrics["ctr"] / 100, safe_divide(spend, metrics["cpc"]))

    rule = RESULT_RULES.get(objective)
    if rule is None:
        value, calculation = _conversions_rule("CVR")(impressions, clicks, metrics)
        label = "Conversions"
    else:
        value, calculation = rule(impressions, clicks, metrics)
        label = RESULT_LABEL_OVERRIDES.get(objective, objective_label(objective))

    return ScenarioPrediction(
        impressions=ResultEstimate(
            value=round(impressions),
            calculation=f"({spend} / {currency} {round(metrics['cpm'], 2)}) x 1,000 = {_fmt(impressions)}",
        ),
        clicks=ResultEstimate(
            value=round(clicks),
            calculation=f"{_fmt(impressions)} impressions x {round(metrics['ctr'], 2)}% CTR = {_fmt(clicks)}",
        ),
        primary_result=ResultEstimate(value=round(value), calculation=calculation, label=label),
        metrics={metric: round(amount, 2) for metric, amount in metrics.items()},
        cost_per_result={
            "cost_per_impression": round(spend / max(impressions, 1), 4),
            "cost_per_click": round(spend / max(clicks, 1), 2),
            "cost_per_conversion": round(spend / max(round(value), 1), 2),
        },
    )


def calculate_expected_results(
    spend: float,
    industry: str,
    bands: Optional[Mapping[str, BandResult]],
    objective: str = "leads",
    currency: str = "SAR",
    date_range: Optional[DateRange] = None,
) -> ExpectedResultsResponse:
    """
    Project results for ``spend`` under the four performance scenarios.

    Args:
        spend: Budget in the reporting currency.
        industry: Industry the bands belong to.
        bands: The industry's metric bands, or None when the industry has no
            benchmark population in the forecast window.
        objective: Objective deciding the primary result rule.
        currency: Reporting currency of ``spend`` and the bands.
        date_range: Window the bands were computed over.

    Returns:
        ExpectedResultsResponse with one prediction per scenario.

    Raises:
        ForecastUnavailable: If ``bands`` is None or holds no real band.
    """
    if bands is None or not any(isinstance(band, PercentileBand) for band in bands.values()):
        raise ForecastUnavailable(industry)

    predictions = {
        scenario: predict_scenario(spend, bands, multipliers, objective, currency)
        for scenario, multipliers in SCENARIO_MULTIPLIERS.items()
    }
    data_points = sum(
        band.sample_size for band in bands.values() if isinstance(band, PercentileBand)
    )
    logger.info(
        f"Projected results for {industry}/{objective} at spend {spend} "
        f"from {data_points} data points"
    )

    return ExpectedResultsResponse(
        input={"spend": spend, "industry": industry, "objective": objective},
        currency=currency,
        predictions=predictions,
        benchmark_info={
            "calculation_method": "dynamic",
            "data_points": data_points,
            "date_range": date_range.model_dump(by_alias=True, mode="json") if date_range else None,
        },
        disclaimers=list(DISCLAIMERS),
    )
