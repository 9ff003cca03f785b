'''
Ad Benchmark Backend Test Suite

Test Modules:
-------------
- test_currency.py: exchange-rate snapshots and normalization
- test_results.py: results resolution policy
- test_calculators.py: objective KPI calculators
- test_percentiles.py: percentile bands and outlier filtering
- test_classification.py: performance score and status
- test_benchmarks.py: peer-group benchmarks, account comparison, rankings
- test_insights.py: recommendation generation
- test_forecast.py: expected-results projection
- test_metrics.py: KPI summary, timeseries and spend breakdown
- test_repository.py / test_sql.py: data access with a mocked asyncpg connection
- test_api.py: HTTP endpoints with overridden dependencies
'''
