"""
Objective-specific KPI calculators.

Each advertiser objective has one ObjectiveCalculator strategy that decides
which KPIs are primary/secondary (UI ordering only) and which counter is the
"results" denominator for cost-per-result style KPIs. All formulas live on
the base class so every objective computes a given KPI the same way.

Common KPI formulas:
- ctr = clicks / impressions x 100
- cpc = spend / clicks
- cpm = spend / impressions x 1000
- cvr = results / clicks x 100
- cpl = spend / leads
- cost_per_call = spend / calls
- roas = revenue / spend

Objective-specific KPIs:
- frequency = impressions / reach
- vtr = video_views / impressions x 100
- cpa / cost_per_result = spend / results
- aov = revenue / results
- conversations = conversions
- retention_rate = conversions / reach x 100
- ltv = revenue / reach
- call_conversion_rate = calls / clicks x 100

Every KPI is 0 when its denominator is 0; no KPI is ever NaN or infinite.
Monetary inputs must already be in the reporting currency; calculators are
currency-agnostic arithmetic.

Usage:
    calculator = get_calculator("leads")
    kpis = calculator.calculate_kpis([aggregate])
    kpis["cpl"]
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

from adbench.exceptions import InvalidObjective
from adbench.services.aggregates import COUNTER_FIELDS, MetricAggregate, sum_aggregates
from adbench.services.results import resolve_results


# =============================================================================
# Safe Arithmetic
# =============================================================================


def safe_divide(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """Return numerator / denominator x scale, or 0.0 for a zero denominator."""
    if not denominator:
        return 0.0
    value = numerator / denominator * scale
    return value if math.isfinite(value) else 0.0


def safe_percentage(numerator: float, denominator: float) -> float:
    return safe_divide(numerator, denominator, 100.0)


# =============================================================================
# KPI Set
# =============================================================================


@dataclass
class KpiSet:
    """
    Named KPI values computed under one objective and currency.

    Percentages are currency-free; cpc/cpm/cpl/cpa/cost_per_* are in
    ``currency``. Two sets are only comparable under the same objective and
    currency.
    """
    objective: str
    currency: Optional[str]
    values: Dict[str, float] = field(default_factory=dict)

    def __getitem__(self, name: str) -> float:
        return self.values[name]

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def get(self, name: str, default: float = 0.0) -> float:
        return self.values.get(name, default)

    def is_comparable(self, other: "KpiSet") -> bool:
        return self.objective == other.objective and self.currency == other.currency

    def as_dict(self) -> Dict[str, float]:
        return dict(self.values)


# =============================================================================
# Calculator Base
# =============================================================================


class ObjectiveCalculator:
    """
    Base strategy: computes KPIs from summed aggregates.

    Subclasses set ``objective``, the ordered ``primary``/``secondary`` KPI
    names, extra ``health`` values reported alongside them, and override
    ``results`` when their cost-per-result denominator is not conversions.
    """

    objective: str = ""
    primary: Tuple[str, ...] = ()
    secondary: Tuple[str, ...] = ()
    health: Tuple[str, ...] = ()

    def primary_kpis(self) -> List[str]:
        return list(self.primary)

    def secondary_kpis(self) -> List[str]:
        return list(self.secondary)

    def kpi_names(self) -> List[str]:
        """All KPI names this objective reports, in display order without duplicates."""
        names: List[str] = []
        for name in self.primary + self.secondary + self.health:
            if name not in names:
                names.append(name)
        return names

    # -------------------------------------------------------------------------
    # Results denominator
    # -------------------------------------------------------------------------

    def results(self, aggregate: MetricAggregate) -> float:
        """Results count of a single aggregate; conversions by default."""
        return aggregate.conversions

    def total_results(self, aggregates: Sequence[MetricAggregate]) -> float:
        return sum(self.results(aggregate) for aggregate in aggregates)

    # -------------------------------------------------------------------------
    # Calculation
    # -------------------------------------------------------------------------

    def calculate_kpis(self, aggregates: Sequence[MetricAggregate]) -> KpiSet:
        """
        Compute this objective's KPIs over ``aggregates``.

        Results are resolved per input aggregate and then summed, so passing
        per-campaign aggregates applies the results policy campaign by
        campaign. Empty input yields every KPI = 0.

        Args:
            aggregates: Metric aggregates already in the reporting currency.

        Returns:
            KpiSet tagged with this objective and the aggregates' currency.
        """
        aggregates = list(aggregates)
        totals = sum_aggregates(aggregates)
        results = self.total_results(aggregates)
        values = {name: self._compute(name, totals, results) for name in self.kpi_names()}
        return KpiSet(objective=self.objective, currency=totals.currency, values=values)

    def kpi_value(self, name: str, aggregates: Sequence[MetricAggregate]) -> float:
        """
        Compute a single KPI or raw counter, whether or not it is one of this
        objective's reported KPIs. Unknown names yield 0.
        """
        aggregates = list(aggregates)
        return self._compute(name, sum_aggregates(aggregates), self.total_results(aggregates))

    def _compute(self, name: str, totals: MetricAggregate, results: float) -> float:
        if name in COUNTER_FIELDS:
            return getattr(totals, name)
        formula = KPI_FORMULAS.get(name)
        if formula is None:
            return 0.0
        return formula(totals, results)


# Each formula takes (summed aggregate, results count)
KPI_FORMULAS: Dict[str, Callable[[MetricAggregate, float], float]] = {
    "ctr": lambda a, r: safe_percentage(a.clicks, a.impressions),
    "cpc": lambda a, r: safe_divide(a.spend, a.clicks),
    "cpm": lambda a, r: safe_divide(a.spend, a.impressions, 1000.0),
    "cvr": lambda a, r: safe_percentage(r, a.clicks),
    "cpl": lambda a, r: safe_divide(a.spend, a.leads),
    "cost_per_call": lambda a, r: safe_divide(a.spend, a.calls),
    "roas": lambda a, r: safe_divide(a.revenue, a.spend),
    "frequency": lambda a, r: safe_divide(a.impressions, a.reach),
    "vtr": lambda a, r: safe_percentage(a.video_views, a.impressions),
    "cpa": lambda a, r: safe_divide(a.spend, r),
    "cost_per_result": lambda a, r: safe_divide(a.spend, r),
    "aov": lambda a, r: safe_divide(a.revenue, r),
    "conversations": lambda a, r: a.conversions,
    "retention_rate": lambda a, r: safe_percentage(a.conversions, a.reach),
    "ltv": lambda a, r: safe_divide(a.revenue, a.reach),
    "call_conversion_rate": lambda a, r: safe_percentage(a.calls, a.clicks),
    "results": lambda a, r: r,
}


class ResultsBasedCalculator(ObjectiveCalculator):
    """
    Calculator whose results come from the results-resolution policy.

    ``result_objective`` is the objective fed to the policy when an aggregate
    carries no declared campaign objective of its own.
    """

    result_objective: Optional[str] = None

    def results(self, aggregate: MetricAggregate) -> float:
        objective = aggregate.campaign_objective or self.result_objective
        return resolve_results(aggregate, objective=objective)


# =============================================================================
# Objective Variants
# =============================================================================


class AwarenessCalculator(ObjectiveCalculator):
    objective = "awareness"
    primary = ("spend", "reach", "cpm", "frequency")
    secondary = ("impressions", "ctr", "vtr")
    health = ("clicks", "video_views")


class EngagementCalculator(ObjectiveCalculator):
    objective = "engagement"
    primary = ("spend", "ctr", "frequency")
    secondary = ("reach", "vtr")
    health = ("impressions", "clicks")


class TrafficCalculator(ObjectiveCalculator):
    objective = "traffic"
    primary = ("spend", "cpc", "ctr")
    secondary = ("impressions", "clicks", "cpm")
    health = ("sessions",)


class MessagesCalculator(ObjectiveCalculator):
    objective = "messages"
    primary = ("spend", "cpc", "ctr", "conversations")
    secondary = ("impressions", "clicks", "cpm")


class AppInstallsCalculator(ObjectiveCalculator):
    """App installs are reported in the purchases counter."""
    objective = "app_installs"
    primary = ("spend", "cpa", "ctr")
    secondary = ("cpc", "cvr", "cpm")
    health = ("impressions", "clicks", "purchases")

    def results(self, aggregate: MetricAggregate) -> float:
        return aggregate.purchases


class InAppActionsCalculator(ResultsBasedCalculator):
    objective = "in_app_actions"
    primary = ("spend", "cpa", "ctr", "atc")
    secondary = ("cpc", "cvr", "cpm")
    health = ("cost_per_result",)


class LeadsCalculator(ResultsBasedCalculator):
    objective = "leads"
    result_objective = "leads"
    primary = ("spend", "cpl", "leads", "cvr")
    secondary = ("ctr", "cpc", "cpm")
    health = ("impressions", "clicks", "cost_per_result")


class WebsiteSalesCalculator(ResultsBasedCalculator):
    objective = "website_sales"
    result_objective = "sales"
    primary = ("spend", "roas", "cpa", "revenue")
    secondary = ("aov", "cvr", "cpc")
    health = ("cost_per_result",)


class SalesCalculator(ObjectiveCalculator):
    objective = "sales"
    primary = ("spend", "roas", "cpa")
    secondary = ("aov", "cvr", "cpc")
    health = ("revenue", "purchases", "clicks", "impressions")

    def results(self, aggregate: MetricAggregate) -> float:
        return aggregate.purchases


class CallsCalculator(ObjectiveCalculator):
    objective = "calls"
    primary = ("spend", "cost_per_call", "calls")
    secondary = ("call_conversion_rate", "cpc", "ctr")
    health = ("impressions", "clicks")

    def results(self, aggregate: MetricAggregate) -> float:
        return aggregate.calls


class RetentionCalculator(ObjectiveCalculator):
    objective = "retention"
    primary = ("spend", "cpa", "retention_rate", "ltv")
    secondary = ("ctr", "cpc")


# =============================================================================
# Factory
# =============================================================================

CALCULATORS: Dict[str, Type[ObjectiveCalculator]] = {
    calculator.objective: calculator
    for calculator in (
        AwarenessCalculator,
        EngagementCalculator,
        TrafficCalculator,
        MessagesCalculator,
        AppInstallsCalculator,
        InAppActionsCalculator,
        LeadsCalculator,
        WebsiteSalesCalculator,
        SalesCalculator,
        CallsCalculator,
        RetentionCalculator,
    )
}


def supported_objectives() -> List[str]:
    return list(CALCULATORS)


def is_valid_objective(objective: str) -> bool:
    return objective in CALCULATORS


def get_calculator(objective: str) -> ObjectiveCalculator:
    """
    Return a calculator for ``objective``.

    Args:
        objective: Objective name, e.g. "leads". Enum members are accepted.

    Returns:
        A fresh ObjectiveCalculator instance.

    Raises:
        InvalidObjective: If no calculator is registered for the objective.
    """
    name = getattr(objective, "value", objective)
    calculator_class = CALCULATORS.get(name)
    if calculator_class is None:
        raise InvalidObjective(str(name), supported_objectives())
    return calculator_class()
