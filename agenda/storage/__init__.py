"""Storage layer for the calendar file."""

from agenda.storage.calendar_store import CalendarStore, StoreWriteResult

__all__ = [
    "CalendarStore",
    "StoreWriteResult",
]
