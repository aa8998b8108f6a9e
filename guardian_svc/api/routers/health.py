"""
Health, readiness, and metrics endpoints for operational visibility.

This module provides:
- /health: Liveness probe (is the app running?)
- /ready: Readiness probe (are the store and the broker reachable?)
- /metrics: Prometheus-compatible metrics
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List

import redis
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from core.config import REDIS_URL, settings
from core.dependencies import get_database
from core.middleware import get_metrics_collector
from repositories.base import Database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health & Observability"])

SERVICE_VERSION = "1.0.0"


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    status: str  # "healthy"
    version: str
    timestamp: str  # ISO 8601 UTC


class DependencyStatus(BaseModel):
    """Status of a single dependency."""
    name: str
    status: str  # "ok", "degraded", "unavailable"
    latency_ms: float | None = None
    message: str | None = None


class ReadyResponse(BaseModel):
    status: str  # "ready", "degraded", "not_ready"
    dependencies: List[DependencyStatus]
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


# =============================================================================
# HEALTH ENDPOINT (LIVENESS)
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Liveness probe",
    description="Check if the application is running. Does not check dependencies."
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="healthy", version=SERVICE_VERSION, timestamp=_now())


# =============================================================================
# READINESS ENDPOINT
# =============================================================================

async def _check_database(db: Database) -> DependencyStatus:
    """Run a trivial query against the SQLite store."""
    start = time.perf_counter()
    try:
        conn = db.get_connection()
        try:
            conn.execute("SELECT 1 FROM kv_store LIMIT 1")
        finally:
            conn.close()
        return DependencyStatus(
            name="database",
            status="ok",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message="SQLite store healthy"
        )
    except Exception as e:
        logger.error("Database health check failed", extra={"error": str(e)})
        return DependencyStatus(
            name="database",
            status="unavailable",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message=f"Connection failed: {type(e).__name__}"
        )


async def _check_broker() -> DependencyStatus:
    """
    Ping Redis, which carries both the Celery queue and the sync topics.

    Sync is best effort, so an unreachable broker only degrades the service.
    """
    start = time.perf_counter()
    try:
        client = redis.from_url(REDIS_URL, socket_timeout=2)
        client.ping()
        return DependencyStatus(
            name="sync_broker",
            status="ok",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message="Redis broker healthy"
        )
    except redis.RedisError as e:
        logger.warning("Broker health check failed", extra={"error": str(e)})
        return DependencyStatus(
            name="sync_broker",
            status="degraded",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            message=f"Broker unavailable: {type(e).__name__}"
        )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness probe",
    description="Check the key-value store and, when sync is enabled, the Redis broker. "
                "Returns 503 if the store is unavailable."
)
async def readiness_check(response: Response, db: Database = Depends(get_database)) -> ReadyResponse:
    dependencies = [await _check_database(db)]
    if settings.guardian_sync_enabled:
        dependencies.append(await _check_broker())

    critical_down = any(d.status == "unavailable" for d in dependencies if d.name == "database")
    any_degraded = any(d.status in ("degraded", "unavailable") for d in dependencies)

    if critical_down:
        status = "not_ready"
        response.status_code = 503
    elif any_degraded:
        status = "degraded"
    else:
        status = "ready"

    return ReadyResponse(status=status, dependencies=dependencies, timestamp=_now())


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Request counts, exports, recognition outcomes and sync push results in Prometheus text format."
)
async def get_metrics() -> Response:
    return Response(
        content=get_metrics_collector().get_prometheus_format(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@router.get("/metrics/json", summary="JSON metrics")
async def get_metrics_json() -> Dict[str, Any]:
    return get_metrics_collector().get_summary()


@router.get("/", summary="API root")
async def root() -> Dict[str, Any]:
    return {
        "service": "Guardian Service API",
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
        "metrics": "/metrics"
    }
