"""Exception hierarchy for calendar operations."""


class AgendaError(Exception):
    """Base exception for calendar operations."""

    pass


class CodecError(AgendaError):
    """Calendar data could not be decoded as a whole."""

    pass


class UnsupportedFormatError(AgendaError):
    """File format not supported."""

    pass


class ValidationError(AgendaError):
    """Entry failed creation rules (title, start/end ordering)."""

    pass


class EntryNotFoundError(AgendaError):
    """No entry matches the given (title, start) key."""

    pass


class StoreError(AgendaError):
    """Base exception for calendar file storage."""

    pass


class StoreReadError(StoreError):
    """Calendar file exists but could not be read. Safe to retry."""

    pass


class StoreWriteError(StoreError):
    """Calendar file could not be written. The in-memory model is unchanged."""

    pass


class ConfigurationError(AgendaError):
    """Configured path or setting is unusable."""

    pass
