"""Reminder scheduling over the in-memory calendar model."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set

from agenda.models.entry import Entry, EntryKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reminder:
    """A fired reminder notification."""

    title: str
    start: datetime
    minutes_before: int
    description: str = ""
    category: str = ""

    @property
    def key(self) -> EntryKey:
        return (self.title, self.start)

    def message(self, now: datetime) -> str:
        """Human-readable reminder text relative to ``now``."""
        minutes = max(0, int((self.start - now).total_seconds() // 60))
        when = self.start.strftime("%H:%M")
        if minutes == 0:
            return f"{self.title} starts now ({when})"
        unit = "minute" if minutes == 1 else "minutes"
        return f"{self.title} starts in {minutes} {unit} ({when})"


Notifier = Callable[[Reminder], None]


class ReminderScheduler:
    """Fire one notification per (title, start) inside its reminder window.

    An entry is armed when it has a positive reminder and a start. On each
    tick an armed entry whose window ``[start - reminder, start)`` contains
    ``now`` fires once. Windows that pass without a tick never fire.
    """

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.notifier = notifier
        self.clock = clock
        self._entries: List[Entry] = []
        self._notified: Set[EntryKey] = set()

    @property
    def notified(self) -> Set[EntryKey]:
        return set(self._notified)

    def reschedule(self, entries: Iterable[Optional[Entry]]) -> int:
        """Watch a new set of entries.

        Already-notified keys are kept, so unchanged entries do not fire again
        and an entry with a new start is armed as a new one.

        Returns:
            Number of armed entries.
        """
        self._entries = [e for e in entries if e is not None and e.has_reminder]
        logger.debug(f"Rescheduled reminders: {len(self._entries)} armed entries")
        return len(self._entries)

    def pending(self, now: Optional[datetime] = None) -> List[Entry]:
        """Armed entries that have not fired and whose start is still ahead."""
        now = now or self.clock()
        return sorted(
            (
                e
                for e in self._entries
                if e.key not in self._notified and e.start > now
            ),
            key=lambda e: e.reminder_at,
        )

    def tick(self, now: Optional[datetime] = None) -> List[Reminder]:
        """Evaluate all armed entries and fire those inside their window.

        Returns:
            Reminders fired during this tick.
        """
        now = now or self.clock()
        fired = []
        for entry in self._entries:
            if entry.key in self._notified:
                continue
            if not (entry.reminder_at <= now < entry.start):
                continue

            self._notified.add(entry.key)
            reminder = Reminder(
                title=entry.title,
                start=entry.start,
                minutes_before=entry.reminder_minutes_before,
                description=entry.description,
                category=entry.category,
            )
            fired.append(reminder)
            logger.info(f"Reminder: {reminder.message(now)}")
            self._notify(reminder)

        self._forget_started(now)
        return fired

    def _forget_started(self, now: datetime) -> None:
        """Drop notified keys whose window has closed for good."""
        started = {key for key in self._notified if key[1] is None or key[1] <= now}
        if started:
            logger.debug(f"Forgetting {len(started)} started reminders")
            self._notified -= started

    def _notify(self, reminder: Reminder) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier(reminder)
        except Exception as e:
            # A failing notifier must not stop the remaining reminders
            logger.error(f"Reminder notifier failed for {reminder.title!r}: {e}")
