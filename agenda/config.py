"""Configuration for the calendar engine."""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from agenda.codec.base import DateFallback
from agenda.exceptions import ConfigurationError

try:
    from dotenv import find_dotenv, load_dotenv
except ImportError:
    load_dotenv = None


class AgendaConfig(BaseModel):
    """Calendar configuration with Pydantic validation."""

    # Storage paths
    calendar_path: Path = Field(default=Path("data/calendar.ics"))
    log_dir: Path = Field(default=Path("logs"))

    # File naming
    log_filename: str = Field(default="agenda.log")
    backup_suffix: str = Field(default=".bak")

    # Malformed start date handling, one policy per dialect
    ics_date_fallback: DateFallback = Field(default=DateFallback.SKIP)
    vcs_date_fallback: DateFallback = Field(default=DateFallback.SKIP)

    # Timers
    change_poll_seconds: float = Field(default=2.0, gt=0)
    reminder_tick_seconds: float = Field(default=5.0, gt=0)

    @property
    def backup_path(self) -> Path:
        """Sibling file holding the previous calendar before an emptying write."""
        return self.calendar_path.with_name(
            self.calendar_path.name + self.backup_suffix
        )

    def ensure_writable(self) -> None:
        """Create the calendar's parent directory and check it accepts writes.

        Raises:
            ConfigurationError: If the directory cannot be created or written.
        """
        parent = self.calendar_path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create calendar directory {parent}: {e}"
            ) from e
        if not os.access(parent, os.W_OK):
            raise ConfigurationError(f"Calendar directory is not writable: {parent}")
        if self.calendar_path.is_dir():
            raise ConfigurationError(
                f"Calendar path points to a directory: {self.calendar_path}"
            )

    @classmethod
    def from_env(cls) -> "AgendaConfig":
        """Load configuration from environment variables and .env file."""
        # Load .env file if python-dotenv is available
        if load_dotenv is not None:
            # Search from the working directory, like the config command does
            load_dotenv(find_dotenv(usecwd=True))

        # Build config dict from environment
        config_dict = {}

        # Storage paths
        if "AGENDA_CALENDAR_PATH" in os.environ:
            config_dict["calendar_path"] = Path(os.environ["AGENDA_CALENDAR_PATH"])
        if "AGENDA_LOG_DIR" in os.environ:
            config_dict["log_dir"] = Path(os.environ["AGENDA_LOG_DIR"])

        # File naming
        if "AGENDA_LOG_FILENAME" in os.environ:
            config_dict["log_filename"] = os.environ["AGENDA_LOG_FILENAME"]

        # Date fallback policies
        for key, field_name in (
            ("AGENDA_ICS_DATE_FALLBACK", "ics_date_fallback"),
            ("AGENDA_VCS_DATE_FALLBACK", "vcs_date_fallback"),
        ):
            if key in os.environ:
                try:
                    config_dict[field_name] = DateFallback(
                        os.environ[key].strip().lower()
                    )
                except ValueError:
                    pass  # Keep default if invalid

        # Timers
        for key, field_name in (
            ("AGENDA_CHANGE_POLL_SECONDS", "change_poll_seconds"),
            ("AGENDA_REMINDER_TICK_SECONDS", "reminder_tick_seconds"),
        ):
            if key in os.environ:
                try:
                    value = float(os.environ[key])
                except ValueError:
                    continue  # Keep default if invalid
                if value > 0:
                    config_dict[field_name] = value

        return cls(**config_dict)
