"""Data models."""

from agenda.models.entry import DEFAULT_CATEGORY, UNTITLED, Entry, EntryKey

__all__ = [
    "DEFAULT_CATEGORY",
    "UNTITLED",
    "Entry",
    "EntryKey",
]
