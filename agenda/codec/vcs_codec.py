"""VCS (vCalendar 1.0) codec.

icalendar only understands the 2.0 grammar, so the legacy dialect is handled
line by line here. Content lines are split and folded with icalendar's
``Contentline``. Supported properties: DTSTART, DTEND, SUMMARY, DESCRIPTION,
CATEGORIES and DALARM. Values may be quoted-printable encoded, as written by
phones and older Outlook versions.
"""

import logging
import quopri
import re
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from icalendar.parser import Contentline, Contentlines, q_split

from agenda.codec.base import DateFallback, Dialect, escape_text, unescape_text
from agenda.exceptions import CodecError
from agenda.models.entry import Entry, to_local_naive

logger = logging.getLogger(__name__)

PRODID = "-//Agenda Sync//VCS 1.0//EN"
DATETIME_FORMAT = "%Y%m%dT%H%M%S"

# vCalendar 1.0 allows encodings as bare parameters (";QUOTED-PRINTABLE")
BARE_ENCODINGS = {"QUOTED-PRINTABLE", "BASE64", "8BIT", "7BIT"}

_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_UNESCAPED_SEPARATOR = re.compile(r"(?<!\\)[,;]")


def parse_datetime(value: str) -> Optional[datetime]:
    """Parse a VCS date-time into naive local time, or None if malformed."""
    v = value.strip()
    try:
        if v.upper().endswith("Z"):
            utc = datetime.strptime(v[:-1], DATETIME_FORMAT).replace(
                tzinfo=timezone.utc
            )
            return to_local_naive(utc)
        if len(v) == 8:
            return datetime.strptime(v, "%Y%m%d")
        if len(v) == 15 and v[8] in "Tt":
            return datetime.strptime(v.upper(), DATETIME_FORMAT)
        return to_local_naive(datetime.fromisoformat(v))
    except ValueError:
        return None


def format_datetime(value: datetime) -> str:
    return value.strftime(DATETIME_FORMAT)


def _is_soft_break(line: str) -> bool:
    """Quoted-printable values continue on the next line after a trailing '='."""
    head = line.split(":", 1)[0].upper()
    return line.endswith("=") and "QUOTED-PRINTABLE" in head


def unfold_lines(content: str) -> List[str]:
    """Join folded continuation lines into logical content lines."""
    lines: List[str] = []
    for raw in _LINE_BREAK.split(content):
        if raw[:1] in (" ", "\t"):
            if lines:
                lines[-1] += raw[1:]
            else:
                lines.append(raw[1:])
        elif lines and _is_soft_break(lines[-1]):
            lines[-1] = lines[-1][:-1] + raw
        else:
            lines.append(raw)
    return lines


def _normalize_bare_params(head: str) -> str:
    """Rewrite bare vCalendar parameters into NAME=VALUE form."""
    name, *params = q_split(head, ";") or [""]
    kept = [name]
    for param in params:
        bare = param.strip()
        if "=" in param:
            kept.append(param)
        elif bare.upper() in BARE_ENCODINGS:
            kept.append(f"ENCODING={bare.upper()}")
        elif bare:
            kept.append(f"TYPE={bare}")
    return ";".join(kept)


def split_content_line(line: str) -> Tuple[str, Dict[str, str], str]:
    """Split 'NAME;PARAM=X:value' into (NAME, {PARAM: X}, raw value).

    A line icalendar cannot split comes back with an empty name.
    """
    sep = Contentline(line).value_separator_index()
    if sep < 0:
        return line.strip().upper(), {}, ""
    head = _normalize_bare_params(line[:sep])
    try:
        name, params, value = Contentline(head + line[sep:]).raw_parts()
    except ValueError as e:
        logger.debug(f"Ignoring unparseable VCS line {line!r}: {e}")
        return "", {}, ""
    flat = {
        str(key).upper(): v if isinstance(v, str) else ",".join(v)
        for key, v in params.items()
    }
    return name.upper(), flat, value


def _decode_value(params: Dict[str, str], value: str) -> str:
    if params.get("ENCODING", "").upper() != "QUOTED-PRINTABLE":
        return value
    charset = params.get("CHARSET", "utf-8")
    raw = quopri.decodestring(value.encode("ascii", errors="replace"))
    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        logger.warning(f"Unknown charset {charset!r} in VCS data, using UTF-8")
        return raw.decode("utf-8", errors="replace")


class _EventDraft:
    """Properties collected between BEGIN:VEVENT and END:VEVENT."""

    def __init__(self):
        self.summary: Optional[str] = None
        self.description: Optional[str] = None
        self.category: Optional[str] = None
        self.start: Optional[datetime] = None
        self.start_malformed = False
        self.end: Optional[datetime] = None
        self.alarm: Optional[datetime] = None


class VCSCodec:
    """Codec for VCS calendar data."""

    dialect = Dialect.VCS

    def __init__(
        self,
        date_fallback: DateFallback = DateFallback.SKIP,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.date_fallback = date_fallback
        self.clock = clock

    def decode(self, data: bytes) -> List[Entry]:
        """Decode VCS bytes into entries.

        Raises:
            CodecError: If the bytes are not UTF-8 text or hold no VCALENDAR.
        """
        try:
            content = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CodecError(f"VCS data is not valid UTF-8: {e}") from e

        if not content.strip():
            logger.warning("VCS data contains only whitespace")
            return []

        entries: List[Entry] = []
        draft: Optional[_EventDraft] = None
        skipped = 0
        in_calendar = False

        for line in unfold_lines(content):
            name, params, value = split_content_line(line)

            if name == "BEGIN" and value.strip().upper() == "VCALENDAR":
                in_calendar = True
                continue
            if name == "BEGIN" and value.strip().upper() == "VEVENT":
                draft = _EventDraft()
                continue
            if name == "END" and value.strip().upper() == "VEVENT":
                if draft is not None:
                    entry = self._finish(draft)
                    if entry is None:
                        skipped += 1
                    else:
                        entries.append(entry)
                draft = None
                continue

            # Ignore lines outside VEVENT blocks
            if draft is None:
                continue

            value = _decode_value(params, value)
            if name == "SUMMARY":
                draft.summary = unescape_text(value)
            elif name == "DESCRIPTION":
                draft.description = unescape_text(value)
            elif name == "CATEGORIES":
                first = _UNESCAPED_SEPARATOR.split(value)[0]
                draft.category = unescape_text(first).strip() or None
            elif name == "DTSTART":
                draft.start = parse_datetime(value)
                draft.start_malformed = draft.start is None
            elif name == "DTEND":
                draft.end = parse_datetime(value)
            elif name == "DALARM":
                draft.alarm = parse_datetime(_UNESCAPED_SEPARATOR.split(value)[0])

        if not in_calendar:
            raise CodecError("VCS data has no BEGIN:VCALENDAR, not a calendar file")
        if skipped:
            logger.warning(f"Skipped {skipped} VCS events without a usable start")
        logger.debug(f"Decoded {len(entries)} entries from VCS data")
        return entries

    def encode(self, entries: Optional[Iterable[Optional[Entry]]]) -> bytes:
        """Encode entries as VCS bytes.

        ``None`` items and entries without a start are left out.
        """
        lines = [
            "BEGIN:VCALENDAR",
            f"VERSION:{self.dialect.version}",
            f"PRODID:{PRODID}",
        ]

        written = 0
        for entry in entries or []:
            if entry is None or entry.start is None:
                continue
            lines.extend(self._entry_lines(entry))
            written += 1

        lines.append("END:VCALENDAR")
        logger.debug(f"Encoded {written} entries as VCS")
        # Contentline folds at 75 octets, Contentlines joins with CRLF
        return Contentlines(Contentline(line) for line in lines).to_ical()

    def _finish(self, draft: _EventDraft) -> Optional[Entry]:
        start = draft.start
        if start is None:
            if not draft.start_malformed:
                logger.debug(f"Skipping VCS event without DTSTART: {draft.summary!r}")
                return None
            if self.date_fallback is not DateFallback.NOW:
                logger.warning(
                    f"Skipping VCS event with malformed DTSTART: {draft.summary!r}"
                )
                return None
            logger.warning(f"Malformed DTSTART in VCS event {draft.summary!r}, using now")
            start = to_local_naive(self.clock())

        reminder = None
        if draft.alarm is not None and draft.alarm < start:
            reminder = int((start - draft.alarm).total_seconds()) // 60

        return Entry(
            title=draft.summary,
            description=draft.description,
            start=start,
            end=draft.end or start,
            category=draft.category,
            reminder_minutes_before=reminder,
        )

    def _entry_lines(self, entry: Entry) -> List[str]:
        lines = [
            "BEGIN:VEVENT",
            f"DTSTART:{format_datetime(entry.start)}",
            f"DTEND:{format_datetime(entry.end or entry.start)}",
        ]
        if entry.title:
            lines.append(f"SUMMARY:{escape_text(entry.title)}")
        if entry.description:
            lines.append(f"DESCRIPTION:{escape_text(entry.description)}")
        if entry.category:
            lines.append(f"CATEGORIES:{escape_text(entry.category)}")
        if entry.has_reminder:
            lines.append(f"DALARM:{format_datetime(entry.reminder_at)};;0;Reminder")
        lines.append("END:VEVENT")
        return lines
