"""FastAPI router for purge maintenance endpoints.

Provides admin APIs for:
- Purging expired soft-deleted assets on demand
- Previewing what a purge would remove
- Viewing the effective retention settings

All endpoints require the Admin role.
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from ..auth import Principal, UserRole, require_role
from ..config import Settings, get_settings
from ..database import get_db
from ..storage import StorageProvider
from .schemas import PurgePreview, PurgeResult, RetentionInfo
from .service import DEFAULT_RETENTION, InvalidRetentionError, PurgeEngine, validate_retention

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin-maintenance"])


def resolve_retention(
    retention: Optional[timedelta],
    retention_days: Optional[int],
    configured: Optional[timedelta],
) -> timedelta:
    """Pick the effective retention: explicit duration, then days, then config, then 10 days.

    Raises:
        InvalidRetentionError: If retention_days does not fit in a duration
    """
    if retention is not None:
        return retention
    if retention_days is not None:
        try:
            return timedelta(days=retention_days)
        except OverflowError:
            raise InvalidRetentionError(f"Retention of {retention_days} days is out of range")
    if configured is not None:
        return configured
    return DEFAULT_RETENTION


def get_storage_provider(request: Request) -> StorageProvider:
    """Storage provider built once by the application lifespan."""
    return request.app.state.storage


def get_purge_engine(
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage_provider),
) -> PurgeEngine:
    return PurgeEngine(db, storage, trigger="admin")


def _effective_retention(
    retention: Optional[timedelta],
    retention_days: Optional[int],
    settings: Settings,
) -> timedelta:
    try:
        effective = resolve_retention(retention, retention_days, settings.RETENTION.purge_deleted_after)
        return validate_retention(effective)
    except InvalidRetentionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/purge-deleted", response_model=PurgeResult)
async def purge_deleted(
    retention: Optional[timedelta] = Query(
        default=None,
        description="Retention window as ISO-8601 duration (P10D) or seconds; wins over retentionDays",
    ),
    retention_days: Optional[int] = Query(default=None, alias="retentionDays"),
    principal: Principal = Depends(require_role(UserRole.ADMIN)),
    engine: PurgeEngine = Depends(get_purge_engine),
    settings: Settings = Depends(get_settings),
) -> PurgeResult:
    """Permanently remove soft-deleted assets older than the retention window.

    The caller waits for the pass and gets its summary. Database work runs
    in worker threads (see PurgeEngine), so other requests keep being served.

    Raises:
        HTTPException 400: Retention is zero, negative or out of range (nothing is queried)
        HTTPException 500: Data store failure (via the application handler)
    """
    effective = _effective_retention(retention, retention_days, settings)

    logger.warning(
        f"Manual purge requested by {principal.subject}",
        extra={"subject": principal.subject, "retention": str(effective)},
    )

    try:
        result = await engine.purge(effective)
    except InvalidRetentionError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.warning(
        "Manual purge complete",
        extra={"subject": principal.subject, **result.model_dump(mode="json", by_alias=True)},
    )
    return result


@router.get("/purge-deleted/preview", response_model=PurgePreview)
def preview_purge(
    retention: Optional[timedelta] = Query(default=None),
    retention_days: Optional[int] = Query(default=None, alias="retentionDays"),
    principal: Principal = Depends(require_role(UserRole.ADMIN)),
    engine: PurgeEngine = Depends(get_purge_engine),
    settings: Settings = Depends(get_settings),
) -> PurgePreview:
    """Count the assets a purge with the same parameters would remove."""
    effective = _effective_retention(retention, retention_days, settings)
    return engine.preview(effective)


@router.get("/retention", response_model=RetentionInfo)
def get_retention_settings(
    principal: Principal = Depends(require_role(UserRole.ADMIN)),
    settings: Settings = Depends(get_settings),
) -> RetentionInfo:
    """Effective retention and purge scheduling settings."""
    retention = settings.RETENTION
    return RetentionInfo(
        purge_deleted_after=retention.purge_deleted_after,
        purge_job_enabled=retention.purge_job_enabled,
        purge_job_initial_delay=retention.purge_job_initial_delay,
        purge_job_interval=retention.purge_job_interval,
        storage_provider=settings.STORAGE.provider.value,
    )
