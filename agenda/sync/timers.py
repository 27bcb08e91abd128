"""Periodic change-poll and reminder-tick timers."""

import logging
from typing import Callable, Optional

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

CHANGE_POLL_JOB = "change_poll"
REMINDER_TICK_JOB = "reminder_tick"


class SyncTimers:
    """
    Drives the change poll and the reminder tick on fixed intervals.

    Uses APScheduler with a single worker thread, so the two jobs never run
    at the same time and never overlap with themselves.
    """

    def __init__(
        self,
        poll: Callable[[], object],
        tick: Callable[[], object],
        poll_seconds: float = 2.0,
        tick_seconds: float = 5.0,
    ):
        """
        Initialize the timers.

        Args:
            poll: Called on every change-poll interval
            tick: Called on every reminder-tick interval
            poll_seconds: Change-poll interval in seconds
            tick_seconds: Reminder-tick interval in seconds
        """
        self.poll = poll
        self.tick = tick
        self.poll_seconds = poll_seconds
        self.tick_seconds = tick_seconds
        self.scheduler: Optional[BackgroundScheduler] = None
        self.is_running = False

    def start(self) -> None:
        """Start both interval jobs."""
        if self.is_running:
            logger.warning("Timers are already running")
            return

        self.scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self.scheduler.add_job(
            func=self._run,
            args=(CHANGE_POLL_JOB, self.poll),
            trigger=IntervalTrigger(seconds=self.poll_seconds),
            id=CHANGE_POLL_JOB,
            name="Calendar change poll",
            replace_existing=True,
        )
        self.scheduler.add_job(
            func=self._run,
            args=(REMINDER_TICK_JOB, self.tick),
            trigger=IntervalTrigger(seconds=self.tick_seconds),
            id=REMINDER_TICK_JOB,
            name="Reminder tick",
            replace_existing=True,
        )
        self.scheduler.start()
        self.is_running = True
        logger.info(
            f"Timers started (poll every {self.poll_seconds}s, "
            f"reminders every {self.tick_seconds}s)"
        )

    def stop(self) -> None:
        """Stop both jobs and wait for a running one to finish."""
        if not self.is_running:
            return

        self.scheduler.shutdown(wait=True)
        self.scheduler = None
        self.is_running = False
        logger.info("Timers stopped")

    def _run(self, name: str, func: Callable[[], object]) -> None:
        try:
            func()
        except Exception as e:
            # Keep the interval alive; the next run retries
            logger.error(f"Timer job {name} failed: {e}")
