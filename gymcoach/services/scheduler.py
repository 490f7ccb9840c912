import logging
from datetime import datetime, timezone

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import sessionmaker

from gymcoach.db.database import SessionLocal
from gymcoach.jobs.broadcast_dispatch import Processor, dispatch_due_broadcasts
from gymcoach.services.broadcast_processor import process_broadcast

logger = logging.getLogger(__name__)

DISPATCH_JOB_ID = "broadcast_dispatch"


class BroadcastScheduler:
    """Polls for due broadcasts on a fixed interval.

    Built once by the application at startup and kept on ``app.state``.
    ``start`` runs a pass straight away so broadcasts that fell due while the
    process was down are not held back a full interval.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        interval_seconds: int = 30,
        scheduler: BaseScheduler | None = None,
        processor: Processor = process_broadcast,
    ):
        self._session_factory = session_factory
        self._interval_seconds = interval_seconds
        self._scheduler = scheduler or AsyncIOScheduler()
        self._processor = processor
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._scheduler.add_job(
            self.run_pass,
            IntervalTrigger(seconds=self._interval_seconds),
            id=DISPATCH_JOB_ID,
            replace_existing=True,
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info(f"Broadcast scheduler started (every {self._interval_seconds}s)")

    def stop(self, wait: bool = False) -> None:
        """Stop polling. With ``wait``, block until a pass in flight has finished."""
        if not self._running:
            return
        try:
            self._scheduler.remove_job(DISPATCH_JOB_ID)
        except JobLookupError:
            pass
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        self._running = False
        logger.info("Broadcast scheduler stopped")

    def run_pass(self, now: datetime | None = None) -> int:
        """One scan-and-process pass. Never raises."""
        try:
            return dispatch_due_broadcasts(self._session_factory, self._processor, now=now)
        except Exception:
            logger.exception("Broadcast scheduler pass failed")
            return 0
