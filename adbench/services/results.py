"""
Results resolution: the canonical count of successful outcomes for a campaign.

Different campaigns report success differently (leads, purchases, calls or
messages), so cost-per-result needs a single deterministic rule shared by
the KPI summary and the spend breakdown:

1. Campaign name keyword, checked in order:
   "whatsapp" / "message" -> conversions (messages)
   "leadgen" / "lead"     -> leads
   "purchase" / "sales"   -> purchases
   "call"                 -> calls
2. Declared campaign objective: leads -> leads, sales -> purchases,
   calls -> calls.
3. Otherwise the first non-zero of leads, purchases, calls, conversions.

Ties are broken by list order, never by magnitude. Historical cost-per-result
figures depend on this order; do not reorder.
"""

from typing import Optional, Tuple

from adbench.services.aggregates import MetricAggregate


# Ordered (keywords, counter) rules matched against the lower-cased campaign name
KEYWORD_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("whatsapp", "message"), "conversions"),
    (("leadgen", "lead"), "leads"),
    (("purchase", "sales"), "purchases"),
    (("call",), "calls"),
)

OBJECTIVE_RESULT_COUNTERS = {
    "leads": "leads",
    "sales": "purchases",
    "calls": "calls",
}

PRIORITY_COUNTERS: Tuple[str, ...] = ("leads", "purchases", "calls", "conversions")


def result_counter(
    aggregate: MetricAggregate,
    campaign_name: Optional[str] = None,
    objective: Optional[str] = None,
) -> str:
    """
    Name of the counter that holds the results for this aggregate.

    ``campaign_name`` and ``objective`` default to the aggregate's own
    campaign metadata.
    """
    name = (campaign_name if campaign_name is not None else aggregate.campaign_name) or ""
    name = name.lower()
    for keywords, counter in KEYWORD_RULES:
        if any(keyword in name for keyword in keywords):
            return counter

    declared = objective if objective is not None else aggregate.campaign_objective
    if declared in OBJECTIVE_RESULT_COUNTERS:
        return OBJECTIVE_RESULT_COUNTERS[declared]

    for counter in PRIORITY_COUNTERS:
        if getattr(aggregate, counter):
            return counter
    return PRIORITY_COUNTERS[-1]


def resolve_results(
    aggregate: MetricAggregate,
    campaign_name: Optional[str] = None,
    objective: Optional[str] = None,
) -> int:
    """
    Resolve the canonical results count for one campaign aggregate.

    Args:
        aggregate: Counters of the campaign over the requested window.
        campaign_name: Campaign name; defaults to ``aggregate.campaign_name``.
        objective: Declared campaign objective; defaults to
            ``aggregate.campaign_objective``.

    Returns:
        The results count as an integer.

    Example:
        >>> agg = MetricAggregate(leads=12, conversions=40)
        >>> resolve_results(agg, campaign_name="Ramadan WhatsApp Leads")
        40
    """
    counter = result_counter(aggregate, campaign_name, objective)
    return int(getattr(aggregate, counter) or 0)


def sum_all_results(aggregate: MetricAggregate) -> int:
    """Account-level results: leads + purchases + calls + conversions."""
    return int(sum(getattr(aggregate, counter) or 0 for counter in PRIORITY_COUNTERS))
