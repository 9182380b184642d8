"""Health check utilities for FOMS.

Provides health and readiness checks for the database, the photo storage
provider and the Celery broker.
"""

import time
from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.orm import Session
import redis

from ..storage import StorageProvider
from .logging_config import get_logger

logger = get_logger(__name__)

# Probe key; never written, only checked for existence
STORAGE_PROBE_NAME = "__health__"


class HealthStatus(str, Enum):
    """Health check status enum."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def check_database_health(db: Session) -> ComponentHealth:
    """Check database connectivity with a trivial query.

    Args:
        db: Database session

    Returns:
        ComponentHealth: Database health status
    """
    try:
        start = time.time()
        db.execute(text("SELECT 1"))
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Database error: {str(e)}"
        )


async def check_storage_health(storage: StorageProvider) -> ComponentHealth:
    """Check the photo storage provider answers an existence probe.

    A missing probe object is the normal answer; only a transport
    failure marks storage unhealthy.

    Args:
        storage: Configured storage provider

    Returns:
        ComponentHealth: Storage health status
    """
    try:
        start = time.time()
        await storage.exists(STORAGE_PROBE_NAME)
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message=f"{type(storage).__name__} OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.error(f"Storage health check failed: {e}", exc_info=True)
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            message=f"Storage error: {str(e)}"
        )


def check_broker_health(broker_url: str) -> ComponentHealth:
    """Check the Celery broker (Redis).

    The in-process scheduler purges without Celery, so an unreachable
    broker only degrades the service.

    Args:
        broker_url: Redis URL of the broker

    Returns:
        ComponentHealth: Broker health status (DEGRADED, never UNHEALTHY, on failure)
    """
    try:
        client = redis.from_url(broker_url, decode_responses=True)

        start = time.time()
        client.ping()
        latency_ms = (time.time() - start) * 1000

        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Broker connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except Exception as e:
        logger.warning(f"Broker health check failed: {e}")
        return ComponentHealth(
            status=HealthStatus.DEGRADED,
            message=f"Broker error: {str(e)}"
        )


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Determine overall health from component statuses.

    Args:
        components: Dict of component name to health status

    Returns:
        HealthStatus: HEALTHY if all healthy, UNHEALTHY if any unhealthy, else DEGRADED
    """
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
