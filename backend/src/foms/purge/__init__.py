"""Retention purge of soft-deleted vaults, midpoints and cables."""

from .schemas import PurgePreview, PurgeResult, RetentionInfo
from .service import DEFAULT_RETENTION, InvalidRetentionError, PurgeEngine, validate_retention
from .scheduler import PurgeScheduler, wait_or_stop

__all__ = [
    "PurgePreview",
    "PurgeResult",
    "RetentionInfo",
    "DEFAULT_RETENTION",
    "InvalidRetentionError",
    "PurgeEngine",
    "validate_retention",
    "PurgeScheduler",
    "wait_or_stop",
]
