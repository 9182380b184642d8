"""Pydantic schemas for purge results, previews and retention settings.

Field names are snake_case in Python and camelCase on the wire. Durations
serialize as ISO-8601 (``P10D``), instants as ISO-8601 timestamps.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PurgeResult(_CamelModel):
    """Outcome of one purge pass.

    Never persisted; the admin endpoint returns it and the scheduler logs it.
    A photo file counts as an attempt when its name is non-blank, and as a
    success only when the storage provider confirmed the bytes are gone.
    """

    retention: timedelta = Field(description="Retention window the pass used")
    cutoff_utc: datetime = Field(description="Entities deleted before this instant were eligible")
    vaults_purged: int = Field(default=0, ge=0)
    midpoints_purged: int = Field(default=0, ge=0)
    cables_purged: int = Field(default=0, ge=0)
    photo_files_deleted_attempts: int = Field(default=0, ge=0)
    photo_files_deleted_succeeded: int = Field(default=0, ge=0)

    @property
    def total_entities_purged(self) -> int:
        return self.vaults_purged + self.midpoints_purged + self.cables_purged

    @property
    def has_purged_anything(self) -> bool:
        """True when rows or photo files were actually removed."""
        return self.total_entities_purged > 0 or self.photo_files_deleted_succeeded > 0


class PurgePreview(_CamelModel):
    """Counts of what a purge with the same retention would remove right now."""

    retention: timedelta
    cutoff_utc: datetime
    vaults_eligible: int = Field(default=0, ge=0)
    midpoints_eligible: int = Field(default=0, ge=0)
    cables_eligible: int = Field(default=0, ge=0)
    photos_eligible: int = Field(default=0, ge=0)

    @property
    def total_eligible(self) -> int:
        return self.vaults_eligible + self.midpoints_eligible + self.cables_eligible


class RetentionInfo(_CamelModel):
    """Effective retention and scheduling settings."""

    purge_deleted_after: timedelta
    purge_job_enabled: bool
    purge_job_initial_delay: timedelta
    purge_job_interval: timedelta
    storage_provider: str
