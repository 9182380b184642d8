"""Celery application for running purge passes on workers.

Deployments that prefer Celery beat over the in-process scheduler set
RETENTION__PURGE_JOB_ENABLED=false; the beat entry is installed only then, so
exactly one of the two drives periodic purges.

    celery -A foms.celery_app worker -B
"""

from datetime import timedelta
from typing import Any, Dict

from celery import Celery

from .config import DEFAULT_PURGE_JOB_INTERVAL, RetentionSettings, get_settings

PURGE_TASK_NAME = "purge.deleted_entities"
PURGE_BEAT_ENTRY = "purge-deleted-entities"


def build_beat_schedule(retention: RetentionSettings) -> Dict[str, Dict[str, Any]]:
    """Beat schedule for periodic purges, empty when the in-process scheduler is on."""
    if retention.purge_job_enabled:
        return {}

    interval = retention.purge_job_interval
    if interval <= timedelta(0):
        interval = DEFAULT_PURGE_JOB_INTERVAL

    return {
        PURGE_BEAT_ENTRY: {
            "task": PURGE_TASK_NAME,
            "schedule": interval,
            "options": {
                # A pass that was not picked up before the next one is due is dropped
                "expires": interval.total_seconds(),
            },
        },
    }


settings = get_settings()

celery_app = Celery(
    "foms",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["foms.purge.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    result_expires=86400,  # 24 hours
    beat_schedule=build_beat_schedule(settings.RETENTION),
)
