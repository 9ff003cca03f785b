"""
Ad Benchmark Backend Package.

FastAPI service layer for the advertising-performance benchmarking platform.
Provides objective-specific KPI calculation, multi-currency normalization,
percentile-based industry benchmarks and performance insights.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - services: Benchmark and KPI calculation engine
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
