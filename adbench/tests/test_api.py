"""
API Endpoint Test Module

Exercises the FastAPI routers through TestClient with the database
connection, settings and exchange rates overridden (see ``api_client`` in
conftest) and the repository functions patched per test.

Test Coverage:
- Metric endpoints: success, 400 validation errors, 500 on store failure
- Benchmark endpoints: live data, fallback datasets, 404 for unknown accounts
- Fallback when the pool cannot be created or a connection acquired
- Expected-results calculator validation and 422 without a population
- Reference data and health endpoints
"""

from typing import List
from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from adbench.exceptions import AggregationFailure
from adbench.services.aggregates import MetricRow
from adbench.tests.conftest import make_row


# =============================================================================
# Test Data
# =============================================================================

SUMMARY_PARAMS = {"objective": "leads", "from": "2025-01-01", "to": "2025-01-02"}

TECHNOLOGY_ACCOUNT = {
    "id": 1,
    "account_name": "Account 1",
    "platform": "facebook",
    "currency": "SAR",
    "industry": "technology",
}


def population_rows() -> List[MetricRow]:
    """Four technology accounts (CTR 1-4%) and two USD retail accounts."""
    rows = []
    for account_id, clicks in enumerate([100, 200, 300, 400], start=1):
        rows.append(make_row(
            account_id=account_id,
            account_name=f"Account {account_id}",
            campaign_id=100 + account_id,
            campaign_name="Lead Form",
            spend=100.0,
            impressions=10000,
            clicks=clicks,
            leads=5,
        ))
    for account_id, clicks in [(5, 150), (6, 250)]:
        rows.append(make_row(
            account_id=account_id,
            account_name=f"Account {account_id}",
            campaign_id=100 + account_id,
            campaign_name="Lead Form",
            currency="USD",
            industry="retail",
            spend=40.0,
            impressions=10000,
            clicks=clicks,
            leads=4,
        ))
    return rows


def patch_metric_rows(module: str, rows=None, error: Exception = None):
    mock = AsyncMock(return_value=rows or [])
    if error is not None:
        mock.side_effect = error
    return patch(f"adbench.api.{module}.fetch_metric_rows", new=mock)


def patch_account(account):
    return patch("adbench.api.benchmarks.fetch_account", new=AsyncMock(return_value=account))


# =============================================================================
# Metric Endpoints
# =============================================================================

class TestKpiSummaryEndpoint:

    def test_summary(self, api_client, sample_rows):
        with patch_metric_rows("metrics", sample_rows):
            response = api_client.get("/metrics/summary", params=SUMMARY_PARAMS)

        assert response.status_code == 200
        body = response.json()
        assert body["currency"] == "SAR"
        assert body["kpis"]["spend"] == pytest.approx(450.0)
        assert body["date_range"] == {"from": "2025-01-01", "to": "2025-01-02"}
        assert [item["currency"] for item in body["currency_breakdown"]] == ["SAR", "USD"]

    def test_inverted_date_range(self, api_client):
        params = {**SUMMARY_PARAMS, "from": "2025-02-01"}
        with patch_metric_rows("metrics") as fetch:
            response = api_client.get("/metrics/summary", params=params)

        assert response.status_code == 400
        assert "Invalid date range" in response.json()["detail"]
        fetch.assert_not_awaited()

    def test_unknown_objective(self, api_client):
        params = {**SUMMARY_PARAMS, "objective": "rocket_science"}
        with patch_metric_rows("metrics"):
            response = api_client.get("/metrics/summary", params=params)

        assert response.status_code == 400
        assert "rocket_science" in response.json()["detail"]

    def test_unknown_currency(self, api_client):
        rows = [make_row(currency="XYZ", spend=10.0)]
        with patch_metric_rows("metrics", rows):
            response = api_client.get("/metrics/summary", params=SUMMARY_PARAMS)

        assert response.status_code == 400
        assert "XYZ" in response.json()["detail"]

    def test_unknown_currency_policy(self, api_client, test_settings):
        test_settings.treat_unknown_currency_as_reporting = True
        rows = [make_row(currency="XYZ", spend=10.0)]
        with patch_metric_rows("metrics", rows):
            response = api_client.get("/metrics/summary", params=SUMMARY_PARAMS)

        assert response.status_code == 200
        assert response.json()["kpis"]["spend"] == 10.0

    def test_missing_objective(self, api_client):
        response = api_client.get("/metrics/summary", params={"from": "2025-01-01", "to": "2025-01-02"})
        assert response.status_code == 422

    def test_store_failure(self, api_client):
        with patch_metric_rows("metrics", error=AggregationFailure("connection lost")):
            response = api_client.get("/metrics/summary", params=SUMMARY_PARAMS)

        assert response.status_code == 500
        assert "Error computing KPI summary" in response.json()["detail"]


class TestTimeseriesEndpoint:

    def test_by_date(self, api_client, sample_rows):
        params = {"metric": "ctr", "from": "2025-01-01", "to": "2025-01-02"}
        with patch_metric_rows("metrics", sample_rows):
            response = api_client.get("/metrics/timeseries", params=params)

        assert response.status_code == 200
        body = response.json()
        assert body["group_by"] == "date"
        assert [point["period"] for point in body["data"]] == ["2025-01-01", "2025-01-02"]

    def test_by_campaign(self, api_client, sample_rows):
        params = {"metric": "spend", "group_by": "campaign", "from": "2025-01-01", "to": "2025-01-02"}
        with patch_metric_rows("metrics", sample_rows):
            body = api_client.get("/metrics/timeseries", params=params).json()

        assert body["data"][0]["period"] == "Lead Gen Q1"

    def test_invalid_metric(self, api_client):
        params = {"metric": "happiness", "from": "2025-01-01", "to": "2025-01-02"}
        response = api_client.get("/metrics/timeseries", params=params)
        assert response.status_code == 422


class TestSpendBreakdownEndpoint:

    def test_sorted_by_spend(self, api_client, sample_rows):
        params = {"from": "2025-01-01", "to": "2025-01-02"}
        with patch_metric_rows("metrics", sample_rows):
            body = api_client.get("/metrics/spend-breakdown", params=params).json()

        assert [item["account_id"] for item in body["data"]] == [1, 2]
        assert body["data"][0]["daily_average"] == 150.0
        assert body["currency_note"] == "All spend amounts are converted to SAR"


# =============================================================================
# Benchmark Endpoints
# =============================================================================

class TestIndustriesEndpoint:

    def test_live_benchmarks(self, api_client):
        with patch_metric_rows("benchmarks", population_rows()):
            response = api_client.get("/benchmarks/industries")

        assert response.status_code == 200
        body = response.json()
        assert body["fallback"] is False
        assert set(body["data"]) == {"technology", "retail"}
        ctr = body["data"]["technology"]["metrics"]["ctr"]
        assert ctr["benchmark"]["min"] == pytest.approx(1.75)
        assert ctr["benchmark"]["max"] == pytest.approx(3.25)

    def test_group_by_platform(self, api_client):
        with patch_metric_rows("benchmarks", population_rows()):
            body = api_client.get("/benchmarks/industries", params={"group_by": "platform"}).json()

        assert body["group_by"] == ["industry", "platform"]
        assert "technology|facebook" in body["data"]

    def test_empty_population_uses_fallback(self, api_client):
        with patch_metric_rows("benchmarks", []):
            body = api_client.get("/benchmarks/industries").json()

        assert body["fallback"] is True
        assert body["message"].startswith("Using sample data")
        assert set(body["data"]) == {"technology", "retail"}

    def test_store_failure_uses_fallback(self, api_client):
        with patch_metric_rows("benchmarks", error=AggregationFailure("timeout")):
            response = api_client.get("/benchmarks/industries")

        assert response.status_code == 200
        assert response.json()["fallback"] is True

    def test_inverted_date_range(self, api_client):
        response = api_client.get(
            "/benchmarks/industries", params={"from": "2025-03-01", "to": "2025-02-01"},
        )
        assert response.status_code == 400


class TestAccountEndpoint:

    def test_account_classified(self, api_client):
        with patch_metric_rows("benchmarks", population_rows()), patch_account(TECHNOLOGY_ACCOUNT):
            response = api_client.get("/benchmarks/accounts/1")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["industry"] == "technology"
        assert data["metrics"]["ctr"]["status"] == "poor"
        assert data["metrics"]["cvr"]["status"] == "excellent"

    def test_account_without_industry(self, api_client):
        account = {**TECHNOLOGY_ACCOUNT, "id": 99, "industry": None}
        with patch_metric_rows("benchmarks", population_rows()), patch_account(account):
            data = api_client.get("/benchmarks/accounts/99").json()["data"]

        assert data["message"] == "Account industry not set"
        assert all(m["status"] == "no_data" for m in data["metrics"].values())

    def test_not_found(self, api_client):
        with patch_metric_rows("benchmarks", []), patch_account(None):
            response = api_client.get("/benchmarks/accounts/404")

        assert response.status_code == 404

    def test_store_failure(self, api_client):
        with patch_metric_rows("benchmarks", error=AggregationFailure("timeout")), \
                patch_account(TECHNOLOGY_ACCOUNT):
            response = api_client.get("/benchmarks/accounts/1")

        assert response.status_code == 500


class TestSummaryEndpoint:

    def test_live_summary(self, api_client):
        with patch_metric_rows("benchmarks", population_rows()):
            body = api_client.get("/benchmarks/summary").json()

        assert body["fallback"] is False
        assert body["data"]["total_industries"] == 2
        assert body["data"]["total_accounts"] == 6

    def test_fallback(self, api_client):
        with patch_metric_rows("benchmarks", error=AggregationFailure("timeout")):
            body = api_client.get("/benchmarks/summary").json()

        assert body["fallback"] is True
        assert body["message"].startswith("Using default data")
        assert body["data"]["total_industries"] == 8


class TestInsightsEndpoint:

    def test_account_insights(self, api_client):
        with patch_metric_rows("benchmarks", population_rows()), patch_account(TECHNOLOGY_ACCOUNT):
            body = api_client.get("/benchmarks/insights", params={"account_id": 1}).json()

        assert body["fallback"] is False
        ctr = next(item for item in body["insights"] if item["metric"] == "ctr")
        assert ctr["type"] == "improvement"
        assert ctr["priority"] == "high"

    def test_industry_ranking_insights(self, api_client):
        with patch_metric_rows("benchmarks", population_rows()):
            body = api_client.get("/benchmarks/insights").json()

        assert body["fallback"] is False
        assert {item["type"] for item in body["insights"]} == {"success", "warning"}

    def test_missing_account_uses_fallback(self, api_client):
        with patch_metric_rows("benchmarks", []), patch_account(None):
            body = api_client.get("/benchmarks/insights", params={"account_id": 404}).json()

        assert body["fallback"] is True
        assert len(body["insights"]) == 2


class TestUnreachableMetricsStore:
    """Advisory routes resolve their connection without failing when the pool is down."""

    ADVISORY_ROUTES = ["/benchmarks/industries", "/benchmarks/summary", "/benchmarks/insights"]

    @pytest.mark.parametrize("path", ADVISORY_ROUTES)
    def test_pool_creation_failure_uses_fallback(self, pooled_api_client, path):
        refused = AsyncMock(side_effect=OSError("Connection refused"))
        with patch("adbench.core.dependencies.get_db_pool", new=refused):
            response = pooled_api_client.get(path)

        assert response.status_code == 200
        assert response.json()["fallback"] is True

    @pytest.mark.parametrize("path", ADVISORY_ROUTES)
    def test_acquire_failure_uses_fallback(self, pooled_api_client, mock_db_pool, path):
        mock_db_pool.acquire.return_value.__aenter__.side_effect = asyncpg.TooManyConnectionsError(
            "too many connections"
        )
        with patch("adbench.core.dependencies.get_db_pool", new=AsyncMock(return_value=mock_db_pool)):
            response = pooled_api_client.get(path)

        assert response.status_code == 200
        assert response.json()["fallback"] is True

    def test_live_pool_serves_benchmarks(self, pooled_api_client, mock_db_pool, mock_connection):
        # Empty rate table: the static fallback rates apply
        mock_connection.fetch.return_value = []
        with patch("adbench.core.dependencies.get_db_pool", new=AsyncMock(return_value=mock_db_pool)), \
                patch_metric_rows("benchmarks", population_rows()):
            response = pooled_api_client.get("/benchmarks/industries")

        assert response.status_code == 200
        assert response.json()["fallback"] is False
        mock_db_pool.acquire.return_value.__aexit__.assert_awaited_once()

    def test_account_endpoint_still_fails_without_store(self, pooled_api_client):
        refused = AsyncMock(side_effect=OSError("Connection refused"))
        with patch("adbench.core.dependencies.get_db_pool", new=refused):
            response = pooled_api_client.get("/benchmarks/accounts/1")

        assert response.status_code == 500


class TestCalculateResultsEndpoint:

    def test_projection(self, api_client):
        params = {"spend": 1000, "industry": "technology", "objective": "leads"}
        with patch_metric_rows("benchmarks", population_rows()):
            response = api_client.get("/benchmarks/calculate-results", params=params)

        assert response.status_code == 200
        body = response.json()
        assert list(body["predictions"]) == ["poor", "average", "good", "excellent"]
        assert body["benchmark_info"]["calculation_method"] == "dynamic"
        assert body["predictions"]["excellent"]["primary_result"]["label"] == "Leads"

    def test_industry_without_population(self, api_client):
        params = {"spend": 1000, "industry": "healthcare"}
        with patch_metric_rows("benchmarks", population_rows()):
            response = api_client.get("/benchmarks/calculate-results", params=params)

        assert response.status_code == 422
        assert "healthcare" in response.json()["detail"]

    def test_invalid_objective(self, api_client):
        params = {"spend": 1000, "industry": "technology", "objective": "rocket_science"}
        response = api_client.get("/benchmarks/calculate-results", params=params)
        assert response.status_code == 400

    @pytest.mark.parametrize("spend", [0, 2_000_000])
    def test_spend_out_of_bounds(self, api_client, spend):
        params = {"spend": spend, "industry": "technology"}
        response = api_client.get("/benchmarks/calculate-results", params=params)
        assert response.status_code == 422


# =============================================================================
# Reference Data
# =============================================================================

class TestReferenceEndpoints:

    def test_methodology(self, api_client):
        body = api_client.get("/benchmarks/methodology").json()

        assert body["calculation_method"] == "dynamic"
        assert body["methodology"]["metrics_calculated"] == ["CTR", "CPC", "CPM", "CVR", "CPL"]
        assert body["methodology"]["currency"] == "SAR"
        assert body["date_range"] is None

    def test_filter_options(self, api_client):
        body = api_client.get("/benchmarks/filter-options").json()

        assert body["platforms"] == ["facebook", "google", "tiktok"]
        assert body["funnel_stages"] == ["TOF", "MOF", "BOF"]
        assert "industry" in body["group_by"]

    def test_objectives(self, api_client):
        body = api_client.get("/benchmarks/objectives").json()

        assert "leads" in body["data"]
        assert body["labels"]["website_sales"] == "Website Sales"

    def test_health(self, api_client):
        response = api_client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, api_client):
        assert api_client.get("/").json()["name"] == "Ad Benchmark API"
