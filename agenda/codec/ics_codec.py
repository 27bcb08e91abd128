"""ICS (iCalendar 2.0) codec."""

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Iterable, Iterator, List, Optional

from icalendar import Alarm, Calendar, Event, vRecur, vText
from icalendar.parser import Contentlines

from agenda.codec.base import DateFallback, Dialect, escape_text
from agenda.exceptions import CodecError
from agenda.models.entry import Entry, to_local_naive

logger = logging.getLogger(__name__)

PRODID = "-//Agenda Sync//EN"
CRLF = "\r\n"


class LiteralText(vText):
    """TEXT value escaped backslash-first.

    vText reads a literal backslash-N as a line break before escaping, which
    turns 'C:\\New folder' into 'C:' + newline + 'ew folder'.
    """

    def to_ical(self) -> bytes:
        return escape_text(str(self)).encode(self.encoding)


def _to_local(value) -> Optional[datetime]:
    """Convert a decoded DTSTART/DTEND value to naive local time."""
    if isinstance(value, datetime):
        # Floating times stay as-is, UTC and TZID times move to the local zone
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    return None


def _to_utc(value: datetime) -> datetime:
    """Bind naive local time to the system zone and express it in UTC."""
    return value.astimezone(timezone.utc)


def _first(value):
    """Repeated properties decode to a list; keep the first occurrence."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _dt(prop):
    """The ``.dt`` of a date or duration property, None if absent or broken.

    icalendar keeps unparseable values as vBroken, whose ``.dt`` raises.
    """
    if prop is None:
        return None
    try:
        return prop.dt
    except (AttributeError, ValueError) as e:
        logger.debug(f"Unreadable ICS value {str(prop)!r}: {e}")
        return None


def _event_blocks(lines: Iterable[str]) -> Iterator[List[str]]:
    """Content lines of each VEVENT, BEGIN and END included."""
    block: Optional[List[str]] = None
    for line in lines:
        marker = line.strip().upper()
        if marker == "BEGIN:VEVENT":
            block = [line]
        elif block is not None:
            block.append(line)
            if marker == "END:VEVENT":
                yield block
                block = None


def _without_alarms(block: List[str]) -> List[str]:
    kept = []
    depth = 0
    for line in block:
        marker = line.strip().upper()
        if marker == "BEGIN:VALARM":
            depth += 1
        elif depth:
            if marker == "END:VALARM":
                depth -= 1
        else:
            kept.append(line)
    return kept


def _parse_event(block: List[str]) -> Optional[Event]:
    """Parse one VEVENT block, dropping its alarms if they do not parse."""
    try:
        return Event.from_ical(CRLF.join(block))
    except Exception as e:
        error = e

    stripped = _without_alarms(block)
    if len(stripped) < len(block):
        try:
            event = Event.from_ical(CRLF.join(stripped))
        except Exception as e:
            error = e
        else:
            logger.warning(f"Dropped unparseable VALARM of ICS event: {error}")
            return event

    logger.warning(f"Skipping unparseable ICS event: {error}")
    return None


class ICSCodec:
    """Codec for ICS calendar data."""

    dialect = Dialect.ICS

    def __init__(
        self,
        date_fallback: DateFallback = DateFallback.SKIP,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.date_fallback = date_fallback
        self.clock = clock

    def decode(self, data: bytes) -> List[Entry]:
        """Decode ICS bytes into entries.

        Events without a usable start are skipped (or dated now, depending on
        the fallback policy). Only a file that is not calendar data at all
        raises.

        Raises:
            CodecError: If the bytes are not UTF-8 or not parseable as iCalendar.
        """
        try:
            content = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise CodecError(f"ICS data is not valid UTF-8: {e}") from e

        if not content.strip():
            logger.warning("ICS data contains only whitespace")
            return []

        try:
            components = Calendar.from_ical(content, multiple=True)
        except Exception as e:
            components = self._salvage_events(content, e)

        entries = []
        skipped = 0
        for cal in components:
            for component in cal.walk():
                if component.name != "VEVENT":
                    continue
                entry = self._vevent_to_entry(component)
                if entry is None:
                    skipped += 1
                else:
                    entries.append(entry)

        if skipped:
            logger.warning(f"Skipped {skipped} ICS events without a usable start")
        logger.debug(f"Decoded {len(entries)} entries from ICS data")
        return entries

    def encode(self, entries: Optional[Iterable[Optional[Entry]]]) -> bytes:
        """Encode entries as ICS bytes.

        ``None`` items and entries without a start are left out.
        """
        cal = Calendar()
        cal.add("prodid", PRODID)
        cal.add("version", self.dialect.version)

        written = 0
        for entry in entries or []:
            if entry is None or entry.start is None:
                continue
            cal.add_component(self._entry_to_vevent(entry))
            written += 1

        logger.debug(f"Encoded {written} entries as ICS")
        return cal.to_ical()

    def _salvage_events(self, content: str, error: Exception) -> List[Event]:
        """Parse each VEVENT on its own after the calendar as a whole failed.

        Raises:
            CodecError: If the data holds no VCALENDAR.
        """
        try:
            lines = Contentlines.from_ical(content)
        except ValueError as e:
            raise CodecError(f"Failed to parse ICS data: {error}") from e
        if not any(line.strip().upper() == "BEGIN:VCALENDAR" for line in lines):
            raise CodecError(f"Failed to parse ICS data: {error}") from error

        logger.warning(f"ICS data did not parse as a whole, reading each event: {error}")
        events = []
        for block in _event_blocks(lines):
            event = _parse_event(block)
            if event is not None:
                events.append(event)
        return events

    def _vevent_to_entry(self, vevent) -> Optional[Entry]:
        """Convert an ICS VEVENT component to an entry, or None to skip it."""
        start = self._resolve_start(vevent)
        if start is None:
            return None

        end = _to_local(_dt(_first(vevent.get("dtend"))))
        if end is None:
            end = start

        summary = vevent.get("summary")
        description = vevent.get("description")

        return Entry(
            title=str(summary) if summary is not None else None,
            description=str(description) if description is not None else "",
            start=start,
            end=end,
            category=self._read_category(vevent),
            reminder_minutes_before=self._read_reminder(vevent),
            recurrence_rule=self._read_rrule(vevent),
        )

    def _resolve_start(self, vevent) -> Optional[datetime]:
        """Read DTSTART, applying the fallback policy when it is malformed."""
        dtstart = _first(vevent.get("dtstart"))
        start = _to_local(_dt(dtstart))
        if start is not None:
            return start

        # icalendar keeps unparseable values as broken properties and records
        # the failure on the component
        malformed = dtstart is not None or any(
            str(name).upper() == "DTSTART" for name, _ in getattr(vevent, "errors", [])
        )
        if not malformed:
            logger.debug(f"Skipping ICS event without DTSTART: {vevent.get('summary')}")
            return None
        if self.date_fallback is DateFallback.NOW:
            logger.warning(
                f"Malformed DTSTART in ICS event {vevent.get('summary')!r}, using now"
            )
            return to_local_naive(self.clock())
        logger.warning(
            f"Skipping ICS event with malformed DTSTART: {vevent.get('summary')!r}"
        )
        return None

    def _read_category(self, vevent) -> Optional[str]:
        categories = _first(vevent.get("categories"))
        if categories is None:
            return None
        values = getattr(categories, "cats", None)
        if values is None:
            values = str(categories).split(",")
        return str(values[0]).strip() if values else None

    def _read_reminder(self, vevent) -> Optional[int]:
        """Minutes before start of the first VALARM with a duration trigger."""
        for alarm in vevent.subcomponents:
            if alarm.name != "VALARM":
                continue
            offset = _dt(alarm.get("trigger"))
            if isinstance(offset, timedelta):
                return abs(int(offset.total_seconds())) // 60
        return None

    def _read_rrule(self, vevent) -> Optional[str]:
        rrule = _first(vevent.get("rrule"))
        if not rrule:
            return None
        try:
            return rrule.to_ical().decode("utf-8")
        except (AttributeError, ValueError) as e:
            logger.warning(f"Ignoring unreadable RRULE: {e}")
            return None

    def _entry_to_vevent(self, entry: Entry) -> Event:
        event = Event()

        # Required fields
        event.add("summary", LiteralText(entry.title))
        event.add("uid", str(uuid.uuid4()))
        event.add("dtstamp", datetime.now(timezone.utc))
        event.add("dtstart", _to_utc(entry.start))
        event.add("dtend", _to_utc(entry.end or entry.start))

        if entry.description:
            event.add("description", LiteralText(entry.description))
        if entry.category:
            event.add("categories", entry.category)

        if entry.recurrence_rule:
            try:
                event.add("rrule", vRecur.from_ical(entry.recurrence_rule))
            except ValueError as e:
                logger.warning(
                    f"Dropping invalid RRULE {entry.recurrence_rule!r} of "
                    f"{entry.title!r}: {e}"
                )

        if entry.has_reminder:
            alarm = Alarm()
            alarm.add("action", "DISPLAY")
            alarm.add("description", "Reminder")
            alarm.add("trigger", timedelta(minutes=-entry.reminder_minutes_before))
            event.add_component(alarm)

        return event
