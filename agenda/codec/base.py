"""Base classes for calendar codecs."""

import re
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from agenda.exceptions import UnsupportedFormatError
from agenda.models.entry import Entry


class Dialect(str, Enum):
    """Supported calendar interchange formats."""

    ICS = "ics"
    VCS = "vcs"

    @property
    def version(self) -> str:
        """VERSION token written in the calendar header."""
        return "2.0" if self is Dialect.ICS else "1.0"

    @property
    def extension(self) -> str:
        """File extension including the leading dot."""
        return f".{self.value}"

    @classmethod
    def from_path(cls, path: Path) -> "Dialect":
        """Detect dialect from file extension."""
        ext = path.suffix.lstrip(".").lower()
        try:
            return cls(ext)
        except ValueError:
            raise UnsupportedFormatError(
                f"Unsupported file format: .{ext}. Supported formats: "
                f"{', '.join(d.value for d in cls)}"
            ) from None


class DateFallback(str, Enum):
    """What to do with an event whose start date cannot be parsed."""

    SKIP = "skip"
    NOW = "now"


class CalendarCodec(Protocol):
    """Protocol for calendar codecs."""

    dialect: Dialect

    def decode(self, data: bytes) -> List[Entry]:
        """Decode calendar bytes into entries, skipping unusable events."""
        ...

    def encode(self, entries: Optional[Iterable[Optional[Entry]]]) -> bytes:
        """Encode entries into calendar bytes, skipping unusable entries."""
        ...


class CodecRegistry:
    """Registry for calendar codecs by file extension."""

    def __init__(self):
        """Initialize registry."""
        self._codecs: Dict[str, CalendarCodec] = {}

    def register(self, codec: CalendarCodec, extensions: List[str]) -> None:
        """Register codec for file extensions."""
        for ext in extensions:
            # Normalize extension (remove leading dot, lowercase)
            normalized_ext = ext.lstrip(".").lower()
            self._codecs[normalized_ext] = codec

    def get_codec(self, path: Path) -> CalendarCodec:
        """Get codec by file extension."""
        ext = path.suffix.lstrip(".").lower()
        if ext not in self._codecs:
            supported = ", ".join(sorted(self._codecs))
            raise UnsupportedFormatError(
                f"Unsupported file format: .{ext}. Supported formats: {supported}"
            )
        return self._codecs[ext]

    def for_dialect(self, dialect: Dialect) -> CalendarCodec:
        """Get the codec registered for a dialect."""
        for codec in self._codecs.values():
            if codec.dialect is dialect:
                return codec
        raise UnsupportedFormatError(f"No codec registered for {dialect.value}")


_ESCAPED = re.compile(r"\\(.)", re.DOTALL)


def escape_text(value: str) -> str:
    """Escape a TEXT value for a content line.

    Backslashes are escaped first, so a literal backslash followed by ``n``
    or ``N`` survives a round trip. Carriage returns are dropped; a CRLF line
    break comes back as a plain newline.
    """
    return (
        value.replace("\\", "\\\\")
        .replace("\r", "")
        .replace("\n", "\\n")
        .replace(",", "\\,")
        .replace(";", "\\;")
    )


def unescape_text(value: str) -> str:
    """Reverse escape_text in a single pass.

    An escaped backslash followed by ``n`` stays a literal backslash-n.
    """
    return _ESCAPED.sub(lambda m: "\n" if m.group(1) in "nN" else m.group(1), value)
