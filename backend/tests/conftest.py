"""Pytest fixtures for the purge engine, storage providers and admin API.

Provides reusable test fixtures for:
- In-memory SQLite database (one connection shared through StaticPool)
- Local storage provider rooted in tmp_path
- Asset factories for vaults, midpoints and cables with photos
- Bearer tokens for Admin and Viewer callers

Usage:
    @pytest.mark.asyncio
    async def test_purge(db_session, local_storage, make_vault):
        vault = make_vault(deleted_days_ago=11)
        ...
"""

import os
import sys
from pathlib import Path

# Set environment variables BEFORE any foms imports so settings pick them up
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RETENTION__PURGE_JOB_ENABLED"] = "false"
os.environ.setdefault("LOG_JSON", "false")
if "JWT_SECRET" not in os.environ:
    os.environ["JWT_SECRET"] = "test-jwt-secret-key-256-bits-minimum-length-required-for-security"

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from foms.auth import create_access_token
from foms.models import Base, Cable, Midpoint, Photo, Vault
from foms.storage import LocalFileStorageProvider

# Fixed "now" for engine and scheduler tests
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return fixed_clock


@pytest.fixture
def engine():
    """In-memory SQLite engine with foreign keys enforced."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def local_storage(tmp_path) -> LocalFileStorageProvider:
    return LocalFileStorageProvider(tmp_path / "wwwroot", container_name="photos")


@pytest.fixture
def stored_file(local_storage) -> Callable[..., str]:
    """Write a photo file straight into local storage and return its name."""

    def _store(content: bytes = b"\xff\xd8\xff\xe0 fake jpeg") -> str:
        local_storage.base_path.mkdir(parents=True, exist_ok=True)
        name = f"{uuid.uuid4().hex}.jpg"
        (local_storage.base_path / name).write_bytes(content)
        return name

    return _store


def _deleted_at(deleted_days_ago: Optional[float], now: datetime) -> Optional[datetime]:
    if deleted_days_ago is None:
        return None
    return now - timedelta(days=deleted_days_ago)


@pytest.fixture
def make_vault(db_session):
    """Create a vault, optionally soft-deleted N days before NOW, with photos."""

    def _make(
        deleted_days_ago: Optional[float] = None,
        photos: Iterable[str] = (),
        name: str = "V-100",
        now: datetime = NOW,
    ) -> Vault:
        vault = Vault(name=name, longitude=-97.3308, latitude=32.7555)
        deleted_at = _deleted_at(deleted_days_ago, now)
        if deleted_at is not None:
            vault.mark_deleted(deleted_at)
        for file_name in photos:
            vault.photos.append(Photo(file_name=file_name))
        db_session.add(vault)
        db_session.commit()
        return vault

    return _make


@pytest.fixture
def make_midpoint(db_session):
    def _make(
        deleted_days_ago: Optional[float] = None,
        photos: Iterable[str] = (),
        name: str = "MP-7",
        now: datetime = NOW,
    ) -> Midpoint:
        midpoint = Midpoint(name=name)
        deleted_at = _deleted_at(deleted_days_ago, now)
        if deleted_at is not None:
            midpoint.mark_deleted(deleted_at)
        for file_name in photos:
            midpoint.photos.append(Photo(file_name=file_name))
        db_session.add(midpoint)
        db_session.commit()
        return midpoint

    return _make


@pytest.fixture
def make_cable(db_session):
    def _make(
        deleted_days_ago: Optional[float] = None,
        name: str = "C-12",
        now: datetime = NOW,
    ) -> Cable:
        cable = Cable(name=name, path=[[-97.33, 32.75], [-97.32, 32.76]])
        deleted_at = _deleted_at(deleted_days_ago, now)
        if deleted_at is not None:
            cable.mark_deleted(deleted_at)
        db_session.add(cable)
        db_session.commit()
        return cable

    return _make


@pytest.fixture
def admin_token() -> str:
    return create_access_token(subject="admin-1", roles=["Admin"], name="Site Admin")


@pytest.fixture
def viewer_token() -> str:
    return create_access_token(subject="viewer-1", roles=["Viewer"], name="Field Viewer")
