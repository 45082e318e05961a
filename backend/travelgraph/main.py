# backend/travelgraph/main.py
"""
FastAPI application for the travelgraph social engine.

Mounts the v1 routers under /api/v1 and exposes Prometheus metrics. The
acting user arrives in the ``X-User-Id`` header from the auth gateway.
"""

import logging

from fastapi import APIRouter, FastAPI, Response

from . import __version__
from .core.config import settings
from .middleware.prometheus_middleware import METRICS_PATH, PrometheusMiddleware
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    conversations as conversations_v1,
    feed as feed_v1,
    follows as follows_v1,
    matches as matches_v1,
    notifications as notifications_v1,
    trips as trips_v1,
)

# Configure logging
logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_TITLE = "travelgraph API"
API_DESCRIPTION = "Follows, matches, trip membership, direct messages and notifications."

app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(PrometheusMiddleware)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

api_v1.include_router(follows_v1.router, prefix="/follows")
api_v1.include_router(matches_v1.router, prefix="/matches")
api_v1.include_router(trips_v1.router, prefix="/trips")
api_v1.include_router(conversations_v1.router, prefix="/conversations")
api_v1.include_router(notifications_v1.router, prefix="/notifications")
api_v1.include_router(feed_v1.router, prefix="/feed")

app.include_router(api_v1)


@app.get("/health", include_in_schema=False)
def health() -> dict:
    return {"status": "ok", "environment": settings.environment}


@app.get(METRICS_PATH, include_in_schema=False)
def prometheus_scrape() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )


logger.info(f"travelgraph API {__version__} configured for {settings.environment}")
