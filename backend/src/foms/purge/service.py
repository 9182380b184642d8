"""Retention purge engine for soft-deleted assets.

A purge pass permanently removes vaults, midpoints and cables that were
soft-deleted before ``now - retention``, together with their photo rows and
the photo files held by the storage provider:

1. Select expired rows (photos eager-loaded, rows locked where supported)
2. Per owner, re-check eligibility and delete its photo files, best effort
3. Re-check eligibility and delete the rows (photo rows cascade)
4. Commit once for all kinds

File deletions always happen before the commit that removes their rows. A
failed file deletion is logged and counted, never fatal; a database failure
rolls the whole pass back and propagates.

The session is synchronous, so every database step runs in a worker thread
(one at a time, never concurrently) and the event loop stays free to serve
requests while a pass is running.

Restore race: on PostgreSQL the selection takes row locks, so a concurrent
restore waits for the pass to finish. On backends without row locks an owner
restored before its files are reached keeps its files and its row; one
restored while its own files are being deleted keeps its row and is logged,
but those files are gone.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Tuple, Type

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from ..config import DEFAULT_PURGE_DELETED_AFTER
from ..models import Cable, Midpoint, Photo, SoftDeleteMixin, Vault, utc_now
from ..observability.metrics import (
    photo_file_deletions_total,
    purge_duration_seconds,
    purge_runs_total,
    purged_entities_total,
)
from ..storage import StorageProvider
from .schemas import PurgePreview, PurgeResult

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = DEFAULT_PURGE_DELETED_AFTER

# About 100 years; larger windows cannot match any row and overflow datetime math
MAX_RETENTION = timedelta(days=36500)


class InvalidRetentionError(ValueError):
    """Retention window is missing, zero, negative or too large."""


def validate_retention(retention: timedelta) -> timedelta:
    """Return the retention unchanged if it is a positive duration.

    Raises:
        InvalidRetentionError: If retention is not a timedelta, is <= 0 or
            exceeds MAX_RETENTION
    """
    if not isinstance(retention, timedelta):
        raise InvalidRetentionError(
            f"Retention must be a duration, got {type(retention).__name__}"
        )
    if retention <= timedelta(0):
        raise InvalidRetentionError(f"Retention must be positive, got {retention}")
    if retention > MAX_RETENTION:
        raise InvalidRetentionError(
            f"Retention must not exceed {MAX_RETENTION.days} days, got {retention}"
        )
    return retention


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PurgeEngine:
    """Runs purge passes against one database session and storage provider.

    The engine does not own the session; callers open and close it. Each
    call to purge() ends in exactly one commit or one rollback.
    """

    def __init__(
        self,
        db: Session,
        storage: StorageProvider,
        clock: Callable[[], datetime] = utc_now,
        trigger: str = "admin",
    ):
        """Initialize purge engine.

        Args:
            db: Database session
            storage: Provider holding the photo files
            clock: Returns the current instant; injected by tests
            trigger: Metrics label for who started the pass (admin, scheduler, celery)
        """
        self.db = db
        self.storage = storage
        self.clock = clock
        self.trigger = trigger

    def compute_cutoff(self, retention: timedelta) -> datetime:
        """Validate retention and return ``now - retention`` in UTC."""
        validate_retention(retention)
        try:
            return _as_utc(self.clock()) - retention
        except OverflowError:
            raise InvalidRetentionError(f"Retention {retention} reaches before the earliest date")

    def _select_expired(self, model: Type[SoftDeleteMixin], cutoff: datetime, with_photos: bool) -> List:
        query = self.db.query(model).filter(model.expired_predicate(cutoff))
        if with_photos:
            query = query.options(selectinload(model.photos))
        # FOR UPDATE is dropped by dialects without row locks (SQLite)
        return query.order_by(model.id).with_for_update().all()

    def _select_all_expired(self, cutoff: datetime) -> Tuple[List, List, List]:
        return (
            self._select_expired(Vault, cutoff, with_photos=True),
            self._select_expired(Midpoint, cutoff, with_photos=True),
            self._select_expired(Cable, cutoff, with_photos=False),
        )

    def _expired_ids(self, model: Type[SoftDeleteMixin], ids: List[int], cutoff: datetime) -> set:
        if not ids:
            return set()
        return {
            row_id
            for (row_id,) in self.db.query(model.id).filter(
                model.id.in_(ids), model.expired_predicate(cutoff)
            )
        }

    def _log_skipped(self, model: Type[SoftDeleteMixin], row_id: int, stage: str) -> None:
        logger.warning(
            f"{model.__name__} {row_id} is no longer eligible for purge, skipping",
            extra={"entity": model.__tablename__, "entity_id": row_id, "stage": stage},
        )

    async def _delete_photo_files(
        self, model: Type[SoftDeleteMixin], owner_kind: str, owners: List, cutoff: datetime
    ) -> Tuple[int, int]:
        attempts = 0
        succeeded = 0
        for owner in owners:
            photos = [p for p in owner.photos if p.file_name and p.file_name.strip()]
            if not photos:
                continue

            # An owner restored since selection keeps its files
            still_expired = await asyncio.to_thread(self._expired_ids, model, [owner.id], cutoff)
            if owner.id not in still_expired:
                self._log_skipped(model, owner.id, "files")
                continue

            for photo in photos:
                attempts += 1
                try:
                    deleted = await self.storage.delete(photo.file_name)
                except Exception as e:
                    photo_file_deletions_total.labels(outcome="error").inc()
                    logger.warning(
                        f"Failed to delete photo file {photo.file_name}: {e}",
                        extra={
                            "photo_id": photo.id,
                            "owner_kind": owner_kind,
                            "file_name": photo.file_name,
                            "error_type": type(e).__name__,
                            **photo.owner_ref(),
                        },
                    )
                    continue

                if deleted:
                    succeeded += 1
                    photo_file_deletions_total.labels(outcome="deleted").inc()
                else:
                    photo_file_deletions_total.labels(outcome="missing").inc()
                    logger.debug(
                        f"Photo file already absent: {photo.file_name}",
                        extra={"photo_id": photo.id, **photo.owner_ref()},
                    )
        return attempts, succeeded

    def _delete_still_expired(self, model: Type[SoftDeleteMixin], rows: List, cutoff: datetime) -> int:
        """Delete rows that are still expired; return how many were deleted."""
        if not rows:
            return 0

        still_expired = self._expired_ids(model, [row.id for row in rows], cutoff)

        deleted = 0
        for row in rows:
            if row.id not in still_expired:
                self._log_skipped(model, row.id, "rows")
                continue
            self.db.delete(row)
            deleted += 1
        return deleted

    def _delete_rows_and_commit(
        self, vaults: List, midpoints: List, cables: List, cutoff: datetime
    ) -> Tuple[int, int, int]:
        counts = (
            self._delete_still_expired(Vault, vaults, cutoff),
            self._delete_still_expired(Midpoint, midpoints, cutoff),
            self._delete_still_expired(Cable, cables, cutoff),
        )
        self.db.commit()
        return counts

    async def purge(self, retention: timedelta) -> PurgeResult:
        """Permanently remove soft-deleted assets older than the retention window.

        Args:
            retention: Positive retention window

        Returns:
            PurgeResult: Counts of removed rows and photo file deletions

        Raises:
            InvalidRetentionError: Before any query runs, if retention is out of range
            SQLAlchemyError: On data store failure, after rolling back
        """
        try:
            cutoff = self.compute_cutoff(retention)
        except InvalidRetentionError:
            purge_runs_total.labels(trigger=self.trigger, outcome="invalid").inc()
            raise

        started = time.monotonic()
        logger.info(
            f"Purging entities soft-deleted before {cutoff.isoformat()}",
            extra={"retention": str(retention), "cutoff_utc": cutoff.isoformat(), "trigger": self.trigger},
        )

        try:
            vaults, midpoints, cables = await asyncio.to_thread(self._select_all_expired, cutoff)

            vault_attempts, vault_succeeded = await self._delete_photo_files(
                Vault, "vault", vaults, cutoff
            )
            midpoint_attempts, midpoint_succeeded = await self._delete_photo_files(
                Midpoint, "midpoint", midpoints, cutoff
            )

            vaults_purged, midpoints_purged, cables_purged = await asyncio.to_thread(
                self._delete_rows_and_commit, vaults, midpoints, cables, cutoff
            )
        except Exception:
            await asyncio.to_thread(self.db.rollback)
            purge_runs_total.labels(trigger=self.trigger, outcome="failed").inc()
            purge_duration_seconds.observe(time.monotonic() - started)
            raise

        result = PurgeResult(
            retention=retention,
            cutoff_utc=cutoff,
            vaults_purged=vaults_purged,
            midpoints_purged=midpoints_purged,
            cables_purged=cables_purged,
            photo_files_deleted_attempts=vault_attempts + midpoint_attempts,
            photo_files_deleted_succeeded=vault_succeeded + midpoint_succeeded,
        )

        purged_entities_total.labels(kind="vault").inc(vaults_purged)
        purged_entities_total.labels(kind="midpoint").inc(midpoints_purged)
        purged_entities_total.labels(kind="cable").inc(cables_purged)
        purge_runs_total.labels(trigger=self.trigger, outcome="success").inc()
        purge_duration_seconds.observe(time.monotonic() - started)

        return result

    def preview(self, retention: timedelta) -> PurgePreview:
        """Count what purge() would remove right now, without side effects.

        Raises:
            InvalidRetentionError: If retention <= 0
        """
        cutoff = self.compute_cutoff(retention)

        expired_vault_ids = select(Vault.id).where(Vault.expired_predicate(cutoff))
        expired_midpoint_ids = select(Midpoint.id).where(Midpoint.expired_predicate(cutoff))

        photos_eligible = self.db.query(Photo).filter(
            or_(
                Photo.vault_id.in_(expired_vault_ids),
                Photo.midpoint_id.in_(expired_midpoint_ids),
            )
        ).count()

        preview = PurgePreview(
            retention=retention,
            cutoff_utc=cutoff,
            vaults_eligible=self.db.query(Vault).filter(Vault.expired_predicate(cutoff)).count(),
            midpoints_eligible=self.db.query(Midpoint).filter(Midpoint.expired_predicate(cutoff)).count(),
            cables_eligible=self.db.query(Cable).filter(Cable.expired_predicate(cutoff)).count(),
            photos_eligible=photos_eligible,
        )

        logger.info(
            "Generated purge preview",
            extra={"cutoff_utc": cutoff.isoformat(), "total_eligible": preview.total_eligible},
        )
        return preview
