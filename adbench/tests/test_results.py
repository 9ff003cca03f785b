"""
Results Resolution Test Module

The keyword order, objective fallback and priority fallback decide historical
cost-per-result figures, so each precedence step is pinned here.
"""

import pytest

from adbench.services.aggregates import MetricAggregate
from adbench.services.results import result_counter, resolve_results, sum_all_results


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def mixed_aggregate() -> MetricAggregate:
    return MetricAggregate(leads=12, purchases=7, calls=3, conversions=40)


class TestKeywordRules:

    @pytest.mark.parametrize("name,expected", [
        ("Ramadan WhatsApp Leads", 40),
        ("Direct Message Push", 40),
        ("LeadGen Form", 12),
        ("Summer lead campaign", 12),
        ("Purchase retargeting", 7),
        ("Black Friday Sales", 7),
        ("Call Extension", 3),
    ])
    def test_keyword_selects_counter(self, mixed_aggregate, name, expected):
        assert resolve_results(mixed_aggregate, campaign_name=name) == expected

    def test_keywords_checked_before_objective(self, mixed_aggregate):
        assert resolve_results(mixed_aggregate, "Sales push", objective="leads") == 7

    def test_matching_is_case_insensitive(self, mixed_aggregate):
        assert result_counter(mixed_aggregate, "WHATSAPP") == "conversions"

    def test_uses_aggregate_metadata_by_default(self):
        aggregate = MetricAggregate(leads=5, calls=9, campaign_name="Call me")
        assert resolve_results(aggregate) == 9


class TestObjectiveFallback:

    @pytest.mark.parametrize("objective,expected", [
        ("leads", 12),
        ("sales", 7),
        ("calls", 3),
    ])
    def test_declared_objective(self, mixed_aggregate, objective, expected):
        assert resolve_results(mixed_aggregate, "Brand Q1", objective=objective) == expected

    def test_declared_objective_with_zero_counter(self):
        aggregate = MetricAggregate(leads=0, conversions=10)
        assert resolve_results(aggregate, "Brand Q1", objective="leads") == 0


class TestPriorityFallback:

    def test_first_non_zero_counter(self):
        aggregate = MetricAggregate(purchases=4, calls=9, conversions=20)
        assert resolve_results(aggregate, "Brand Q1") == 4

    def test_order_not_magnitude(self):
        aggregate = MetricAggregate(leads=1, conversions=500)
        assert resolve_results(aggregate, "Brand Q1", objective="awareness") == 1

    def test_all_zero(self):
        assert resolve_results(MetricAggregate(), "Brand Q1") == 0

    def test_deterministic(self, mixed_aggregate):
        results = {resolve_results(mixed_aggregate, "Brand Q1") for _ in range(10)}
        assert results == {12}


class TestSumAllResults:

    def test_sums_every_result_counter(self, mixed_aggregate):
        assert sum_all_results(mixed_aggregate) == 12 + 7 + 3 + 40

    def test_ignores_other_counters(self):
        aggregate = MetricAggregate(clicks=100, impressions=1000, leads=2)
        assert sum_all_results(aggregate) == 2
