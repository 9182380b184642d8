"""Unit tests for the Celery purge task and beat schedule"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from foms.celery_app import PURGE_BEAT_ENTRY, PURGE_TASK_NAME, build_beat_schedule
from foms.config import RetentionSettings, Settings
from foms.models import Cable
from foms.purge import InvalidRetentionError
from foms.purge import tasks as purge_tasks
from foms.purge.tasks import purge_deleted_entities_task


@pytest.fixture
def task_env(monkeypatch, session_factory, local_storage):
    """Point the task at the test database and local storage."""
    settings = Settings(RETENTION=RetentionSettings(purge_deleted_after=timedelta(days=10)))
    monkeypatch.setattr(purge_tasks, "get_settings", lambda: settings)
    monkeypatch.setattr(purge_tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(purge_tasks, "build_storage_provider", lambda storage_settings: local_storage)
    return settings


def _add_deleted_cable(db, days_ago: float) -> int:
    from foms.models import utc_now

    cable = Cable(name="C-1")
    cable.mark_deleted(utc_now() - timedelta(days=days_ago))
    db.add(cable)
    db.commit()
    return cable.id


class TestPurgeTask:
    """Test purge.deleted_entities task execution"""

    def test_task_name(self):
        assert purge_deleted_entities_task.name == PURGE_TASK_NAME

    def test_task_purges_with_configured_retention(self, task_env, db_session):
        _add_deleted_cable(db_session, 11)
        _add_deleted_cable(db_session, 2)

        result = purge_deleted_entities_task.apply().get()

        assert result["status"] == "completed"
        assert result["cablesPurged"] == 1
        assert result["total_purged"] == 1
        assert result["retention"] == "P10D"
        db_session.expire_all()
        assert db_session.query(Cable).count() == 1

    def test_retention_override_in_seconds(self, task_env, db_session):
        _add_deleted_cable(db_session, 2)

        result = purge_deleted_entities_task.apply(
            kwargs={"retention_seconds": timedelta(days=1).total_seconds()}
        ).get()

        assert result["cablesPurged"] == 1

    def test_database_failure_returns_failed_status(self, task_env, monkeypatch):
        session = MagicMock()
        session.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        monkeypatch.setattr(purge_tasks, "SessionLocal", lambda: session)

        result = purge_deleted_entities_task.apply().get()

        assert result["status"] == "failed"
        assert result["total_purged"] == 0
        session.close.assert_called_once()

    def test_invalid_retention_raises(self, task_env):
        async_result = purge_deleted_entities_task.apply(kwargs={"retention_seconds": 0})

        assert async_result.failed()
        with pytest.raises(InvalidRetentionError):
            async_result.get()


class TestBeatSchedule:
    """Test the beat schedule follows the in-process scheduler switch"""

    def test_no_beat_entry_when_in_process_scheduler_enabled(self):
        assert build_beat_schedule(RetentionSettings(purge_job_enabled=True)) == {}

    def test_beat_entry_at_configured_interval(self):
        schedule = build_beat_schedule(
            RetentionSettings(purge_job_enabled=False, purge_job_interval=timedelta(hours=6))
        )

        entry = schedule[PURGE_BEAT_ENTRY]
        assert entry["task"] == PURGE_TASK_NAME
        assert entry["schedule"] == timedelta(hours=6)

    def test_non_positive_interval_falls_back_to_24_hours(self):
        schedule = build_beat_schedule(
            RetentionSettings(purge_job_enabled=False, purge_job_interval=timedelta(0))
        )

        assert schedule[PURGE_BEAT_ENTRY]["schedule"] == timedelta(hours=24)
