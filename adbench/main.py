"""
FastAPI application for the Ad Benchmark API.

Mounts the /metrics and /benchmarks routers, applies CORS from Settings and
opens/closes the asyncpg pool in the lifespan. A failed pool start is logged
and does not stop the app: the reference-data routes and /health still
answer, and data routes fail per request.

Run locally:
    uvicorn adbench.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from adbench import __version__
from adbench.api import api_router
from adbench.core.config import get_settings
from adbench.core.database import close_db, init_db


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the metrics store pool on startup and close it on shutdown."""
    logger.info(f"Ad Benchmark API {__version__} starting (reporting currency {settings.reporting_currency})")
    try:
        await init_db()
    except Exception as e:
        logger.error(f"Metrics store unavailable at startup: {e}")

    yield

    try:
        await close_db()
    except Exception as e:
        logger.error(f"Error closing metrics store pool: {e}")
    logger.info("Ad Benchmark API stopped")


app = FastAPI(
    title="Ad Benchmark API",
    version=__version__,
    description=(
        "KPI calculation and industry benchmark engine for advertising accounts: "
        "KPI summaries, timeseries, spend breakdowns, percentile benchmarks, "
        "insights and expected-results projections."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    """Liveness check; does not touch the database."""
    return {"status": "healthy"}


@app.get("/")
async def root():
    return {
        "name": "Ad Benchmark API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("adbench.main:app", host="0.0.0.0", port=8000)
