"""Change detection, reminders and the sync controller."""

from agenda.sync.change_tracker import ChangeTracker, fingerprint, has_changed
from agenda.sync.controller import SyncController
from agenda.sync.reminder_scheduler import Notifier, Reminder, ReminderScheduler
from agenda.sync.timers import SyncTimers

__all__ = [
    "ChangeTracker",
    "Notifier",
    "Reminder",
    "ReminderScheduler",
    "SyncController",
    "SyncTimers",
    "fingerprint",
    "has_changed",
]
