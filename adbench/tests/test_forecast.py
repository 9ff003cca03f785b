"""
Expected-Results Projection Test Module

Test Coverage:
- Impressions and clicks from median bands and scenario multipliers
- Primary result rules per objective
- Static defaults for metrics without a band
- ForecastUnavailable when the industry has no population
"""

from datetime import date

import pytest

from adbench.exceptions import ForecastUnavailable
from adbench.models.schemas import DateRange
from adbench.services.forecast import (
    DEFAULT_METRIC_VALUES,
    DISCLAIMERS,
    SCENARIO_MULTIPLIERS,
    calculate_expected_results,
    predict_scenario,
    scenario_metrics,
)
from adbench.services.percentiles import InsufficientData, PercentileBand


# =============================================================================
# Fixtures
# =============================================================================

def median_band(p50: float, sample_size: int = 4) -> PercentileBand:
    return PercentileBand(p25=p50 * 0.5, p50=p50, p75=p50 * 1.5, sample_size=sample_size)


@pytest.fixture
def industry_bands():
    return {
        "ctr": median_band(2.0),
        "cpc": median_band(1.0),
        "cpm": median_band(10.0),
        "cvr": median_band(10.0),
        "cpl": median_band(20.0),
    }


class TestScenarioMetrics:

    def test_median_times_multiplier(self, industry_bands):
        metrics = scenario_metrics(industry_bands, SCENARIO_MULTIPLIERS["excellent"])
        assert metrics["ctr"] == pytest.approx(2.4)
        assert metrics["cpc"] == pytest.approx(0.5)
        assert metrics["cpm"] == pytest.approx(5.0)

    def test_default_without_band(self):
        bands = {"ctr": median_band(2.0), "cpc": InsufficientData(sample_size=1)}
        metrics = scenario_metrics(bands, SCENARIO_MULTIPLIERS["poor"])
        assert metrics["ctr"] == pytest.approx(0.6)
        assert metrics["cpc"] == DEFAULT_METRIC_VALUES["cpc"]
        assert metrics["cpm"] == DEFAULT_METRIC_VALUES["cpm"]


class TestPredictScenario:

    def test_leads_excellent(self, industry_bands):
        prediction = predict_scenario(
            1000, industry_bands, SCENARIO_MULTIPLIERS["excellent"], "leads",
        )
        assert prediction.impressions.value == 200000
        assert prediction.clicks.value == 4800
        assert prediction.primary_result.value == 576
        assert prediction.primary_result.label == "Leads"
        assert "CVR" in prediction.primary_result.calculation
        assert prediction.cost_per_result["cost_per_click"] == pytest.approx(0.21)

    def test_clicks_floor_from_cpc(self, industry_bands):
        prediction = predict_scenario(
            1000, industry_bands, SCENARIO_MULTIPLIERS["poor"], "leads",
        )
        # impressions x ctr gives ~353 clicks; spend / cpc gives ~588
        assert prediction.clicks.value == 588

    def test_traffic_results_are_clicks(self, industry_bands):
        prediction = predict_scenario(
            1000, industry_bands, SCENARIO_MULTIPLIERS["good"], "traffic",
        )
        assert prediction.primary_result.value == prediction.clicks.value
        assert prediction.primary_result.label == "Website Visits"

    def test_awareness_reach(self, industry_bands):
        prediction = predict_scenario(
            1000, industry_bands, SCENARIO_MULTIPLIERS["excellent"], "awareness",
        )
        assert prediction.primary_result.value == 140000
        assert prediction.primary_result.label == "People Reached"

    def test_unknown_objective_uses_conversions(self, industry_bands):
        prediction = predict_scenario(
            1000, industry_bands, SCENARIO_MULTIPLIERS["average"], "store_checkins",
        )
        assert prediction.primary_result.label == "Conversions"

    def test_zero_results_cost_per_conversion(self):
        bands = {"cvr": median_band(0.0001)}
        prediction = predict_scenario(10, bands, SCENARIO_MULTIPLIERS["poor"], "leads")
        assert prediction.primary_result.value == 0
        assert prediction.cost_per_result["cost_per_conversion"] == 10.0


class TestCalculateExpectedResults:

    def test_all_scenarios(self, industry_bands):
        result = calculate_expected_results(
            1000,
            "technology",
            industry_bands,
            objective="leads",
            date_range=DateRange(from_=date(2024, 1, 1), to=date(2024, 12, 31)),
        )

        assert list(result.predictions) == ["poor", "average", "good", "excellent"]
        assert result.input == {"spend": 1000, "industry": "technology", "objective": "leads"}
        assert result.currency == "SAR"
        assert result.benchmark_info["data_points"] == 20
        assert result.benchmark_info["date_range"] == {"from": "2024-01-01", "to": "2024-12-31"}
        assert result.disclaimers == list(DISCLAIMERS)

    def test_scenarios_ordered(self, industry_bands):
        result = calculate_expected_results(1000, "technology", industry_bands)
        values = [p.primary_result.value for p in result.predictions.values()]
        assert values == sorted(values)

    def test_no_population(self):
        with pytest.raises(ForecastUnavailable) as exc_info:
            calculate_expected_results(1000, "healthcare", None)
        assert str(exc_info.value) == "Not enough data to calculate predictions for healthcare industry"

    def test_only_insufficient_bands(self):
        bands = {"ctr": InsufficientData(sample_size=1)}
        with pytest.raises(ForecastUnavailable):
            calculate_expected_results(1000, "healthcare", bands)
