"""Orchestration of loading, change detection, persistence and reminders."""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from agenda.codec.base import Dialect
from agenda.config import AgendaConfig
from agenda.exceptions import (
    AgendaError,
    ConfigurationError,
    EntryNotFoundError,
    StoreReadError,
    StoreWriteError,
)
from agenda.models.entry import Entry, EntryKey
from agenda.storage.calendar_store import CalendarStore, StoreWriteResult
from agenda.sync.change_tracker import ChangeTracker
from agenda.sync.reminder_scheduler import Notifier, Reminder, ReminderScheduler
from agenda.sync.timers import SyncTimers

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[AgendaError], None]


class SyncController:
    """Owns the in-memory calendar model and keeps the calendar file in step.

    Every mutation and every file write goes through one re-entrant lock, so
    persists are strictly sequential whether they come from the caller or
    from the timer thread.

    Usage:
        controller = SyncController(config)
        controller.load_all()
        controller.create_entry("Dentist", "", start, end, reminder_minutes_before=30)
        controller.shutdown()
    """

    def __init__(
        self,
        config: AgendaConfig | None = None,
        store: CalendarStore | None = None,
        notifier: Notifier | None = None,
        on_error: ErrorCallback | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Initialize controller.

        Args:
            config: Configuration (path, timer intervals, date fallbacks)
            store: CalendarStore instance (defaults to one built from config)
            notifier: Called with each fired Reminder
            on_error: Called with persist failures, after they are logged
            clock: Source of the current local time
        """
        self.config = config or AgendaConfig()
        self.store = store or CalendarStore(self.config)
        self.registry = self.store.registry
        self.tracker = ChangeTracker()
        self.reminders = ReminderScheduler(notifier=notifier, clock=clock)
        self.on_error = on_error

        self.initial_load_completed = False
        self.last_error: Optional[AgendaError] = None

        self._model: List[Entry] = []
        self._lock = threading.RLock()
        self._loading = False
        self._timers: Optional[SyncTimers] = None

    @property
    def model(self) -> List[Entry]:
        """The live model. Call notify_external_edit() after changing it."""
        return self._model

    @property
    def entries(self) -> List[Entry]:
        """Copy of the current model."""
        with self._lock:
            return list(self._model)

    def snapshot(self) -> List[Entry]:
        """Canonical entry sequence rebuilt from the live model."""
        with self._lock:
            return [e for e in self._model if e is not None and e.start is not None]

    # ─────────────────────────────────────────────────────────────────────
    # Collaborator operations
    # ─────────────────────────────────────────────────────────────────────

    def load_all(self) -> List[Entry]:
        """Replace the model with the calendar file's content.

        Raises:
            StoreReadError: If the file exists but cannot be read.
            CodecError: If the file is not calendar data.
        """
        with self._lock:
            self._loading = True
            try:
                entries = self.store.read()
                self._model[:] = entries
                self.tracker.reset(self._model)
                self.reminders.reschedule(self._model)
                self.initial_load_completed = True
            finally:
                self._loading = False

        logger.info(f"Loaded {len(entries)} entries")
        return list(entries)

    def create_entry(
        self,
        title: str,
        description: str | None,
        start: datetime,
        end: datetime,
        reminder_minutes_before: int | None = None,
        category: str | None = None,
    ) -> Entry:
        """Add a new entry and persist.

        Raises:
            ValidationError: If the entry breaks the creation rules.
        """
        entry = Entry.create(
            title=title,
            description=description,
            start=start,
            end=end,
            reminder_minutes_before=reminder_minutes_before,
            category=category,
        )
        with self._lock:
            self._model.append(entry)
            self._persist_if_changed()
        logger.info(f"Created entry {entry.title!r} at {entry.start}")
        return entry

    def update_entry(self, key: EntryKey, **changes) -> Entry:
        """Replace fields of the entry identified by (title, start) and persist.

        Raises:
            EntryNotFoundError: If no entry has this key.
            ValidationError: If the edited entry breaks the creation rules.
        """
        with self._lock:
            index = self._index_of(key)
            fields = self._model[index].model_dump()
            fields.update(changes)
            fields.pop("id", None)
            updated = Entry.create(**fields)
            updated.id = self._model[index].id
            self._model[index] = updated
            self._persist_if_changed()
        logger.info(f"Updated entry {key[0]!r}")
        return updated

    def find_entry(self, key: EntryKey) -> Entry:
        """Entry identified by (title, start).

        Raises:
            EntryNotFoundError: If no entry has this key.
        """
        with self._lock:
            return self._model[self._index_of(key)]

    def delete_entry(self, key: EntryKey) -> Entry:
        """Remove the entry identified by (title, start) and persist.

        Raises:
            EntryNotFoundError: If no entry has this key.
        """
        with self._lock:
            removed = self._model.pop(self._index_of(key))
            self._persist_if_changed()
        logger.info(f"Deleted entry {removed.title!r} at {removed.start}")
        return removed

    def import_from(self, path: Path | str) -> List[Entry]:
        """Merge the entries of an ICS or VCS file into the model and persist.

        Raises:
            UnsupportedFormatError: If the extension is neither .ics nor .vcs.
            StoreReadError: If the file cannot be read.
            CodecError: If the file is not calendar data.
        """
        path = Path(path)
        codec = self.registry.get_codec(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise StoreReadError(f"Failed to read import file {path}: {e}") from e

        imported = codec.decode(data)
        with self._lock:
            self._model.extend(imported)
            self._persist_if_changed()
        logger.info(f"Imported {len(imported)} entries from {path}")
        return imported

    def export_to(self, path: Path | str, dialect: Dialect | None = None) -> Path:
        """Write the current model to a file outside the calendar store.

        Without a dialect it is taken from the extension; a path without an
        .ics or .vcs extension gets the dialect's extension appended.

        Raises:
            StoreWriteError: If the file cannot be written.
        """
        path = Path(path)
        if path.suffix.lower() not in {d.extension for d in Dialect}:
            dialect = dialect or Dialect.ICS
            path = path.with_name(path.name + dialect.extension)
        elif dialect is None:
            dialect = Dialect.from_path(path)

        codec = self.registry.for_dialect(dialect)
        with self._lock:
            data = codec.encode(self.snapshot())

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise StoreWriteError(f"Failed to export calendar to {path}: {e}") from e
        logger.info(f"Exported calendar to {path} ({dialect.value})")
        return path

    def notify_external_edit(self) -> bool:
        """Persist if the model was changed behind the controller's back.

        Returns:
            True if a write happened.
        """
        with self._lock:
            return self._persist_if_changed()

    def poll(self) -> bool:
        """Timer hook for the change poll."""
        return self.notify_external_edit()

    def tick(self, now: datetime | None = None) -> List[Reminder]:
        """Timer hook for the reminder scan."""
        with self._lock:
            return self.reminders.tick(now)

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Start the change-poll and reminder-tick timers."""
        if self._timers is None:
            self._timers = SyncTimers(
                poll=self.poll,
                tick=self.tick,
                poll_seconds=self.config.change_poll_seconds,
                tick_seconds=self.config.reminder_tick_seconds,
            )
        self._timers.start()

    def stop(self) -> None:
        """Stop the timers."""
        if self._timers is not None:
            self._timers.stop()

    def shutdown(self) -> Optional[StoreWriteResult]:
        """Stop timers, then write a non-empty model whatever the tracker says.

        Returns:
            The write result, or None if nothing was written.
        """
        self.stop()
        with self._lock:
            snapshot = self.snapshot()
            if not snapshot:
                logger.info("Nothing to flush on shutdown")
                return None
            try:
                result = self.store.replace_all(
                    snapshot, initial_load_completed=self.initial_load_completed
                )
            except (StoreWriteError, ConfigurationError) as e:
                self._report(e)
                return None
            self.tracker.reset(snapshot)
        logger.info(f"Flushed {result.entry_count} entries on shutdown")
        return result

    # ─────────────────────────────────────────────────────────────────────
    # Private helpers
    # ─────────────────────────────────────────────────────────────────────

    def _index_of(self, key: EntryKey) -> int:
        for index, entry in enumerate(self._model):
            if entry is not None and entry.key == key:
                return index
        title, start = key
        raise EntryNotFoundError(f"No entry {title!r} starting at {start}")

    def _persist_if_changed(self) -> bool:
        if self._loading:
            return False

        snapshot = self.snapshot()
        previous = self.tracker.last_fingerprint
        if not self.tracker.check(snapshot):
            return False

        # Reminders follow the in-memory model even if the write below fails
        self.reminders.reschedule(snapshot)

        try:
            result = self.store.replace_all(
                snapshot, initial_load_completed=self.initial_load_completed
            )
        except (StoreWriteError, ConfigurationError) as e:
            self.tracker.restore(previous)
            self._report(e)
            return False

        if result.suppressed:
            self.tracker.restore(previous)
            return False

        self.last_error = None
        return True

    def _report(self, error: AgendaError) -> None:
        self.last_error = error
        logger.error(f"Calendar changes are not saved: {error}")
        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception as e:
            logger.error(f"Error callback failed: {e}")
