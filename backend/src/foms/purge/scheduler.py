"""In-process purge scheduler.

One PurgeScheduler runs per API process as an asyncio task, started and
stopped by the FastAPI lifespan:

    wait(initial_delay) -> pass -> wait(interval) -> pass -> ... until stopped

Waits return early when the stop event is set; a pass already running is
allowed to finish. A failed pass is logged and the scheduler simply waits for
the next interval.

The database session is opened and closed in a worker thread, and the
engine runs its queries there too, so a pass never blocks the event loop
that serves HTTP requests.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from ..config import (
    DEFAULT_PURGE_DELETED_AFTER,
    DEFAULT_PURGE_JOB_INITIAL_DELAY,
    DEFAULT_PURGE_JOB_INTERVAL,
    RetentionSettings,
)
from ..models import utc_now
from ..observability.request_id import generate_request_id, set_request_id
from ..storage import StorageProvider
from .schemas import PurgeResult
from .service import PurgeEngine, validate_retention

logger = logging.getLogger(__name__)

WaitFunction = Callable[[float, asyncio.Event], Awaitable[bool]]


async def wait_or_stop(seconds: float, stop_event: asyncio.Event) -> bool:
    """Sleep for up to ``seconds``; return True if stop was requested."""
    if stop_event.is_set():
        return True
    if seconds <= 0:
        return False
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True


class PurgeScheduler:
    """Background actor invoking PurgeEngine on a fixed interval.

    The scheduler owns its stop event. Waiting and the clock are injected so
    tests can drive passes without real sleeps.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        storage: StorageProvider,
        retention: Optional[timedelta] = None,
        initial_delay: Optional[timedelta] = None,
        interval: Optional[timedelta] = None,
        wait: WaitFunction = wait_or_stop,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize scheduler.

        Args:
            session_factory: Opens a new database session per pass
            storage: Provider holding the photo files
            retention: Purge window (default 10 days, must be positive)
            initial_delay: Delay before the first pass (default 1 minute, negative -> 0)
            interval: Time between passes (default 24 hours, <= 0 -> 24 hours)
            wait: Awaitable sleep that observes the stop event
            clock: Current instant, passed through to the engine

        Raises:
            InvalidRetentionError: If retention is zero or negative
        """
        self.session_factory = session_factory
        self.storage = storage
        self.retention = validate_retention(
            retention if retention is not None else DEFAULT_PURGE_DELETED_AFTER
        )

        if initial_delay is None:
            initial_delay = DEFAULT_PURGE_JOB_INITIAL_DELAY
        self.initial_delay = max(initial_delay, timedelta(0))

        if interval is None:
            interval = DEFAULT_PURGE_JOB_INTERVAL
        if interval <= timedelta(0):
            logger.warning(
                f"Purge interval {interval} is not positive, using {DEFAULT_PURGE_JOB_INTERVAL}"
            )
            interval = DEFAULT_PURGE_JOB_INTERVAL
        self.interval = interval

        self.wait = wait
        self.clock = clock
        self.passes_attempted = 0
        self.passes_failed = 0
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(
        cls,
        settings: RetentionSettings,
        session_factory: Callable[[], Session],
        storage: StorageProvider,
        **kwargs,
    ) -> "PurgeScheduler":
        return cls(
            session_factory=session_factory,
            storage=storage,
            retention=settings.purge_deleted_after,
            initial_delay=settings.purge_job_initial_delay,
            interval=settings.purge_job_interval,
            **kwargs,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Start the scheduler loop on the running event loop."""
        if self.is_running:
            return self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run(), name="purge-scheduler")
        logger.info(
            "Purge scheduler started",
            extra={
                "retention": str(self.retention),
                "initial_delay": str(self.initial_delay),
                "interval": str(self.interval),
            },
        )
        return self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it (an in-flight pass completes)."""
        self._stop_event.set()
        if self._task is not None:
            await self._task
            self._task = None
        logger.info(
            "Purge scheduler stopped",
            extra={"passes_attempted": self.passes_attempted, "passes_failed": self.passes_failed},
        )

    async def run(self) -> None:
        if await self.wait(self.initial_delay.total_seconds(), self._stop_event):
            return
        while not self._stop_event.is_set():
            await self.run_once()
            if await self.wait(self.interval.total_seconds(), self._stop_event):
                return

    async def run_once(self) -> Optional[PurgeResult]:
        """Run one purge pass in its own session.

        Returns:
            PurgeResult, or None if the pass failed (the failure is logged)
        """
        set_request_id(generate_request_id("purge"))
        self.passes_attempted += 1
        db = None
        try:
            db = await asyncio.to_thread(self.session_factory)
            engine = PurgeEngine(db, self.storage, clock=self.clock, trigger="scheduler")
            result = await engine.purge(self.retention)
        except Exception as e:
            self.passes_failed += 1
            logger.exception(
                f"Purge pass failed: {e}",
                extra={"retention": str(self.retention), "error_type": type(e).__name__},
            )
            return None
        finally:
            if db is not None:
                await asyncio.to_thread(db.close)

        summary = result.model_dump(mode="json", by_alias=True)
        if result.has_purged_anything:
            logger.warning(
                f"PURGE COMPLETE: {result.vaults_purged} vaults, {result.midpoints_purged} midpoints, "
                f"{result.cables_purged} cables, photo files {result.photo_files_deleted_succeeded}"
                f"/{result.photo_files_deleted_attempts}",
                extra=summary,
            )
        else:
            logger.info("Purge pass found nothing to remove", extra=summary)
        return result
