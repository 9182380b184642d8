"""Celery tasks for purging soft-deleted assets.

Tasks:
- purge_deleted_entities_task: one purge pass with the configured retention,
  scheduled by Celery beat when the in-process scheduler is disabled
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from celery import shared_task

from ..config import get_settings
from ..database import SessionLocal
from ..observability.request_id import set_request_id
from ..storage import build_storage_provider
from .service import InvalidRetentionError, PurgeEngine

logger = logging.getLogger(__name__)


@shared_task(name="purge.deleted_entities", bind=True)
def purge_deleted_entities_task(self, retention_seconds: Optional[float] = None) -> Dict[str, Any]:
    """Execute one purge pass.

    The task is idempotent: running it twice in succession finds nothing
    more to delete the second time.

    Args:
        retention_seconds: Override of Retention.PurgeDeletedAfter, in seconds

    Returns:
        Dict with 'status' and, on success, the camelCase PurgeResult fields

    Raises:
        InvalidRetentionError: If retention_seconds is zero or negative
    """
    set_request_id(f"purge-{self.request.id}" if self.request.id else "purge-celery")

    settings = get_settings()
    if retention_seconds is not None:
        retention = timedelta(seconds=retention_seconds)
    else:
        retention = settings.RETENTION.purge_deleted_after

    logger.info("Purge task started", extra={"retention": str(retention)})

    db = SessionLocal()
    try:
        storage = build_storage_provider(settings.STORAGE)
        engine = PurgeEngine(db, storage, trigger="celery")
        result = asyncio.run(engine.purge(retention))

        response = {
            'status': 'completed',
            'total_purged': result.total_entities_purged,
            **result.model_dump(mode="json", by_alias=True),
        }

        if result.has_purged_anything:
            logger.warning("Purge task removed expired assets", extra=response)
        else:
            logger.info("Purge task found nothing to remove", extra=response)

        return response

    except InvalidRetentionError as e:
        logger.error(f"Invalid purge retention: {retention}", extra={"error": str(e)})
        raise

    except Exception as e:
        logger.error(
            "Purge task failed",
            exc_info=True,
            extra={"error": str(e)}
        )

        # Return error status but don't raise (allow task to complete)
        return {
            'status': 'failed',
            'error': str(e),
            'total_purged': 0,
        }

    finally:
        db.close()
