"""Calendar file storage."""

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from agenda import setup_codec_registry
from agenda.codec.base import CalendarCodec, CodecRegistry
from agenda.config import AgendaConfig
from agenda.exceptions import (
    AgendaError,
    ConfigurationError,
    StoreReadError,
    StoreWriteError,
    UnsupportedFormatError,
)
from agenda.models.entry import Entry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreWriteResult:
    """Outcome of a replace_all call."""

    path: Path
    entry_count: int
    suppressed: bool = False
    backup_path: Path | None = None


class CalendarStore:
    """Single calendar file holding the full set of entries.

    Every write replaces the whole file. The path is looked up on the config
    for each operation, so a changed ``calendar_path`` takes effect on the
    next read or write.
    """

    def __init__(
        self,
        config: AgendaConfig | None = None,
        registry: CodecRegistry | None = None,
    ):
        """Initialize store with config."""
        self.config = config or AgendaConfig()
        self.registry = registry or setup_codec_registry(self.config)
        # Entry count of the last successful read or write, None if unknown
        self._last_count: Optional[int] = None

    @property
    def path(self) -> Path:
        return self.config.calendar_path

    @property
    def backup_path(self) -> Path:
        return self.config.backup_path

    @property
    def codec(self) -> CalendarCodec:
        """Codec matching the calendar file's extension.

        Raises:
            ConfigurationError: If the configured path has an unknown extension.
        """
        try:
            return self.registry.get_codec(self.path)
        except UnsupportedFormatError as e:
            raise ConfigurationError(f"Calendar path {self.path}: {e}") from e

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> List[Entry]:
        """Read all entries from the calendar file.

        A missing or blank file is a first run and yields no entries.

        Raises:
            StoreReadError: If the file exists but cannot be read.
            CodecError: If the file content is not calendar data.
        """
        path = self.path
        logger.info(f"Reading calendar file: {path}")

        if not path.exists():
            logger.info(f"Calendar file does not exist yet: {path}")
            self._last_count = 0
            return []

        codec = self.codec
        try:
            data = path.read_bytes()
        except OSError as e:
            raise StoreReadError(f"Failed to read calendar file {path}: {e}") from e

        if not data.strip():
            logger.warning(f"Calendar file is empty: {path}")
            self._last_count = 0
            return []

        entries = codec.decode(data)
        self._last_count = len(entries)
        logger.info(f"Loaded {len(entries)} entries from {path}")
        return entries

    def replace_all(
        self,
        entries: Iterable[Optional[Entry]],
        *,
        initial_load_completed: bool,
    ) -> StoreWriteResult:
        """Replace the calendar file with the given entries.

        Going from N>0 entries to zero is refused until the initial load has
        completed, and otherwise preceded by a copy of the old file to the
        backup path. Any other write over a non-empty file that was never
        loaded is backed up first as well.

        Raises:
            StoreWriteError: If the backup or the write fails.
            ConfigurationError: If the calendar path is unusable.
        """
        path = self.path
        snapshot = [e for e in entries if e is not None and e.start is not None]
        codec = self.codec

        backup = None
        if not snapshot:
            previous = self._previous_count()
            if previous > 0:
                if not initial_load_completed:
                    logger.warning(
                        f"Refusing to replace {previous} entries in {path} with an "
                        "empty calendar before the initial load completed"
                    )
                    return StoreWriteResult(path=path, entry_count=0, suppressed=True)
                backup = self._backup("Calendar is being emptied")
        elif not initial_load_completed and self._previous_count() > 0:
            backup = self._backup("Calendar was never loaded")

        self._write_atomic(codec.encode(snapshot))
        self._last_count = len(snapshot)
        logger.info(f"Wrote {len(snapshot)} entries to {path}")
        return StoreWriteResult(path=path, entry_count=len(snapshot), backup_path=backup)

    def _previous_count(self) -> int:
        """Entries held by the file before this write."""
        if self._last_count is not None:
            return self._last_count
        path = self.path
        if not path.exists():
            return 0
        try:
            data = path.read_bytes()
            if not data.strip():
                return 0
            return len(self.codec.decode(data))
        except (OSError, AgendaError) as e:
            # Unreadable content still counts as something worth keeping
            logger.warning(f"Could not count entries in {path}: {e}")
            return 1

    def _backup(self, reason: str) -> Path:
        """Copy the current calendar file to the backup path."""
        path = self.path
        backup = self.backup_path
        try:
            shutil.copy2(path, backup)
        except OSError as e:
            raise StoreWriteError(
                f"Failed to back up {path} to {backup}, not writing: {e}"
            ) from e
        logger.warning(f"{reason}, previous content saved to {backup}")
        return backup

    def _write_atomic(self, data: bytes) -> None:
        """Write data to a temp file beside the calendar, then move it in place."""
        path = self.path
        self.config.ensure_writable()

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
        except OSError as e:
            raise StoreWriteError(f"Failed to write calendar file {path}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            # Remove the partial temp file, the old calendar stays in place
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise StoreWriteError(f"Failed to write calendar file {path}: {e}") from e
