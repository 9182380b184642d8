"""Observability API endpoints: metrics, health and readiness probes."""

import asyncio

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..config import get_settings
from ..database import get_db
from .health import (
    check_broker_health,
    check_database_health,
    check_storage_health,
    get_overall_health,
    HealthStatus,
)

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Expose Prometheus metrics.

    Returns:
        Response: Metrics in Prometheus text exposition format
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns health status of the database, photo storage and broker",
)
async def health_check(request: Request, db: Session = Depends(get_db)):
    """Check health of all components.

    The database and broker checks block, so they run in worker threads.

    Returns:
        JSONResponse: 200 when healthy or degraded, 503 if any component is unhealthy
    """
    components = {
        "database": await asyncio.to_thread(check_database_health, db),
        "storage": await check_storage_health(request.app.state.storage),
        "broker": await asyncio.to_thread(check_broker_health, get_settings().CELERY_BROKER_URL),
    }

    overall_status = get_overall_health(components)

    response_data = {
        "status": overall_status.value,
        "components": {
            name: {
                "status": comp.status.value,
                "message": comp.message,
                "latency_ms": comp.latency_ms,
            }
            for name, comp in components.items()
        }
    }

    status_code = 200 if overall_status != HealthStatus.UNHEALTHY else 503

    return JSONResponse(
        content=response_data,
        status_code=status_code
    )


@router.get(
    "/ready",
    summary="Readiness check endpoint",
    description="Returns readiness status (for Kubernetes readiness probes)",
)
def readiness_check(db: Session = Depends(get_db)):
    """Check if the application is ready to serve traffic.

    Ready when the database answers; storage and broker are not required.

    Returns:
        dict or JSONResponse: Ready status, or 503 when the database is down
    """
    db_health = check_database_health(db)

    if db_health.status == HealthStatus.HEALTHY:
        return {
            "status": "ready",
            "message": "Application is ready to serve traffic"
        }
    return JSONResponse(
        content={
            "status": "not_ready",
            "message": db_health.message
        },
        status_code=503
    )
