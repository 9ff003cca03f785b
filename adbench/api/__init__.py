"""
API package initialization.

FastAPI router modules for the ad benchmark backend:
- metrics: KPI summary, timeseries and spend breakdown
- benchmarks: industry/account benchmarks, summary, insights,
  expected results and reference data
"""

from fastapi import APIRouter

from adbench.api.metrics import router as metrics_router
from adbench.api.benchmarks import router as benchmarks_router

# Create main API router
api_router = APIRouter()

# Both routers carry their own prefix
api_router.include_router(metrics_router)
api_router.include_router(benchmarks_router)

__all__ = [
    "api_router",
    "metrics_router",
    "benchmarks_router",
]
