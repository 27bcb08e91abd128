"""Change detection over the in-memory calendar model."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from agenda.models.entry import Entry

logger = logging.getLogger(__name__)

# Keeps ("a", "bc") distinct from ("ab", "c")
FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\x1e"


def _stamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value is not None else ""


def project(entry: Entry) -> str:
    """Project an entry into the string compared by the tracker."""
    fields = (
        entry.category,
        entry.title,
        entry.description,
        _stamp(entry.start),
        _stamp(entry.end),
        str(entry.reminder_minutes_before or ""),
        entry.recurrence_rule or "",
    )
    return FIELD_SEPARATOR.join(fields)


def fingerprint(entries: Iterable[Optional[Entry]]) -> str:
    """Order-independent serialization of the model.

    Recomputed in full on every call.
    """
    projections = sorted(project(e) for e in entries if e is not None)
    return RECORD_SEPARATOR.join(projections)


def has_changed(previous: Optional[str], current: str) -> bool:
    """True if the model needs to be persisted."""
    return previous != current


class ChangeTracker:
    """Remembers the last persisted fingerprint and reports new states once."""

    def __init__(self):
        self._last: Optional[str] = None

    @property
    def last_fingerprint(self) -> Optional[str]:
        return self._last

    def reset(self, entries: Iterable[Optional[Entry]]) -> str:
        """Make the given model the baseline without reporting a change."""
        self._last = fingerprint(entries)
        return self._last

    def check(self, entries: Iterable[Optional[Entry]]) -> bool:
        """Return True once for each model state that differs from the baseline.

        The new state becomes the baseline immediately; call ``restore`` with
        the previous fingerprint if persisting it fails.
        """
        current = fingerprint(entries)
        if not has_changed(self._last, current):
            return False
        logger.debug("Calendar model changed since last persist")
        self._last = current
        return True

    def restore(self, previous: Optional[str]) -> None:
        """Roll the baseline back so the next check reports a change again."""
        self._last = previous
