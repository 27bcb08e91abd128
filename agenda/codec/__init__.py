"""Calendar interchange codecs (ICS and legacy VCS)."""

from typing import Iterable, List, Optional

from agenda.codec.base import CalendarCodec, CodecRegistry, DateFallback, Dialect
from agenda.codec.ics_codec import ICSCodec
from agenda.codec.vcs_codec import VCSCodec
from agenda.models.entry import Entry


def get_codec(
    dialect: Dialect, date_fallback: DateFallback = DateFallback.SKIP
) -> CalendarCodec:
    """Get a codec instance for a dialect."""
    if dialect is Dialect.VCS:
        return VCSCodec(date_fallback=date_fallback)
    return ICSCodec(date_fallback=date_fallback)


def decode(data: bytes, dialect: Dialect) -> List[Entry]:
    """Decode calendar bytes of the given dialect."""
    return get_codec(dialect).decode(data)


def encode(entries: Optional[Iterable[Optional[Entry]]], dialect: Dialect) -> bytes:
    """Encode entries in the given dialect."""
    return get_codec(dialect).encode(entries)


__all__ = [
    "CalendarCodec",
    "CodecRegistry",
    "DateFallback",
    "Dialect",
    "ICSCodec",
    "VCSCodec",
    "decode",
    "encode",
    "get_codec",
]
