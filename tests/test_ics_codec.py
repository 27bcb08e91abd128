"""Tests for the ICS codec."""

from datetime import datetime, timedelta, timezone

import pytest
from icalendar import Calendar

from agenda.codec import DateFallback, Dialect, ICSCodec, decode, encode
from agenda.exceptions import CodecError
from agenda.models.entry import UNTITLED, Entry, to_local_naive

GOOGLE_EXPORT = b"""BEGIN:VCALENDAR\r
PRODID:-//Google Inc//Google Calendar 70.9054//EN\r
VERSION:2.0\r
CALSCALE:GREGORIAN\r
METHOD:PUBLISH\r
X-WR-CALNAME:Personal\r
X-WR-TIMEZONE:Europe/Berlin\r
BEGIN:VEVENT\r
DTSTART:20260310T080000Z\r
DTEND:20260310T090000Z\r
DTSTAMP:20260301T120000Z\r
UID:abc123@google.com\r
CREATED:20260301T115900Z\r
DESCRIPTION:Quarterly review with the whole team.\\nAgenda in the doc.\r
LAST-MODIFIED:20260301T115900Z\r
LOCATION:Room 1\r
SEQUENCE:0\r
STATUS:CONFIRMED\r
SUMMARY:Quarterly review\r
TRANSP:OPAQUE\r
BEGIN:VALARM\r
ACTION:DISPLAY\r
DESCRIPTION:This is an event reminder\r
TRIGGER:-P0DT0H30M0S\r
END:VALARM\r
END:VEVENT\r
END:VCALENDAR\r
"""

OUTLOOK_EXPORT = b"""BEGIN:VCALENDAR\r
PRODID:-//Microsoft Corporation//Outlook 16.0 MIMEDIR//EN\r
VERSION:2.0\r
METHOD:PUBLISH\r
BEGIN:VEVENT\r
CATEGORIES:Business,Work\r
CLASS:PUBLIC\r
DTEND:20260302T150000\r
DTSTART:20260302T140000\r
DTSTAMP:20260301T120000Z\r
SUMMARY;LANGUAGE=en-us:Budget planning\r
UID:040000008200E00074C5B7101A82E008\r
X-MICROSOFT-CDO-BUSYSTATUS:BUSY\r
BEGIN:VALARM\r
TRIGGER:-PT1H\r
ACTION:DISPLAY\r
DESCRIPTION:Reminder\r
END:VALARM\r
END:VEVENT\r
END:VCALENDAR\r
"""


def _vcalendar(*events: str) -> bytes:
    body = "".join(f"BEGIN:VEVENT\r\n{e}END:VEVENT\r\n" for e in events)
    return (
        "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nPRODID:-//Test//EN\r\n"
        f"{body}END:VCALENDAR\r\n"
    ).encode("utf-8")


def _roundtrip(entries, codec=None):
    codec = codec or ICSCodec()
    return codec.decode(codec.encode(entries))


def test_ics_roundtrip_preserves_fields():
    """Test encode then decode reproduces every field."""
    entry = Entry(
        title="Planning",
        description="Line one\nLine two; with, punctuation\\",
        start=datetime(2026, 4, 1, 9, 30),
        end=datetime(2026, 4, 1, 11, 0),
        reminder_minutes_before=15,
        category="Work",
        recurrence_rule="FREQ=WEEKLY;COUNT=4",
    )
    [decoded] = _roundtrip([entry])
    assert decoded == entry


def test_ics_roundtrip_long_unicode_description():
    """Test multi-kilobyte multi-script text survives folding."""
    description = "\n".join(
        f"{i}: Grüße 日本語 مرحبا עברית 🎉🚀 " + "x" * 80 for i in range(200)
    )
    entry = Entry(
        title="Café ☕ 会議 🎂",
        description=description,
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
    )
    [decoded] = _roundtrip([entry])
    assert len(description.encode("utf-8")) > 10_000
    assert decoded.title == entry.title
    assert decoded.description == description


def test_ics_encode_writes_header_and_utc_times():
    """Test the calendar header and UTC DTSTART."""
    start = datetime(2026, 4, 1, 9, 0)
    data = ICSCodec().encode([Entry(title="A", start=start, end=start)])
    text = data.decode("utf-8")
    assert "PRODID:-//Agenda Sync//EN" in text
    assert "VERSION:2.0" in text
    expected = start.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    assert f"DTSTART:{expected}" in text
    assert "UID:" in text


def test_ics_encode_alarm_trigger():
    start = datetime(2026, 4, 1, 9, 0)
    entry = Entry(title="A", start=start, end=start, reminder_minutes_before=10)
    cal = Calendar.from_ical(ICSCodec().encode([entry]))
    [alarm] = [c for c in cal.walk() if c.name == "VALARM"]
    assert alarm["action"] == "DISPLAY"
    assert alarm.decoded("trigger") == timedelta(minutes=-10)


def test_ics_encode_skips_none_and_startless_entries():
    """Test None items and entries without a start are dropped."""
    good = Entry(
        title="Kept", start=datetime(2026, 4, 1, 9, 0), end=datetime(2026, 4, 1, 10, 0)
    )
    decoded = _roundtrip([None, good, Entry(title="No start"), None])
    assert [e.title for e in decoded] == ["Kept"]


def test_ics_encode_none_sequence_gives_empty_calendar():
    data = ICSCodec().encode(None)
    assert b"BEGIN:VCALENDAR" in data
    assert ICSCodec().decode(data) == []


def test_ics_decode_missing_dtstart_skips_event():
    """Test a VEVENT without DTSTART is skipped without raising."""
    data = _vcalendar(
        "SUMMARY:No start\r\nDTEND:20260301T100000\r\n",
        "SUMMARY:Has start\r\nDTSTART:20260301T090000\r\n",
    )
    entries = ICSCodec(date_fallback=DateFallback.NOW).decode(data)
    assert [e.title for e in entries] == ["Has start"]


def test_ics_decode_minimal_event_end_defaults_to_start():
    """Test a missing DTEND means end equals start."""
    [entry] = ICSCodec().decode(_vcalendar("DTSTART:20260301T090000\r\n"))
    assert entry.title == UNTITLED
    assert entry.description == ""
    assert entry.start == datetime(2026, 3, 1, 9, 0)
    assert entry.end == entry.start


def test_ics_decode_date_only_is_local_midnight():
    [entry] = ICSCodec().decode(_vcalendar("DTSTART;VALUE=DATE:20260301\r\n"))
    assert entry.start == datetime(2026, 3, 1, 0, 0)


def test_ics_decode_malformed_dtstart_skip():
    """Test SKIP drops an event whose DTSTART cannot be parsed."""
    data = _vcalendar("SUMMARY:Broken\r\nDTSTART:not-a-date\r\n")
    assert ICSCodec(date_fallback=DateFallback.SKIP).decode(data) == []


def test_ics_decode_malformed_dtstart_now():
    """Test NOW dates an unparseable DTSTART at the current time."""
    now = datetime(2026, 5, 5, 10, 20, 30)
    data = _vcalendar("SUMMARY:Broken\r\nDTSTART:not-a-date\r\n")
    [entry] = ICSCodec(date_fallback=DateFallback.NOW, clock=lambda: now).decode(data)
    assert entry.title == "Broken"
    assert entry.start == now
    assert entry.end == now


def test_ics_decode_ignores_empty_lines_and_unknown_components():
    data = (
        b"BEGIN:VCALENDAR\r\nVERSION:2.0\r\n\r\n"
        b"BEGIN:VTODO\r\nSUMMARY:A task\r\nEND:VTODO\r\n"
        b"BEGIN:VEVENT\r\nSUMMARY:Event\r\n\r\nDTSTART:20260301T090000\r\n"
        b"X-CUSTOM:whatever\r\nEND:VEVENT\r\n"
        b"END:VCALENDAR\r\n"
    )
    entries = ICSCodec().decode(data)
    assert [e.title for e in entries] == ["Event"]


def test_ics_decode_google_export():
    """Test a Google Calendar export with UTC times and a VALARM."""
    [entry] = ICSCodec().decode(GOOGLE_EXPORT)
    assert entry.title == "Quarterly review"
    assert entry.description == "Quarterly review with the whole team.\nAgenda in the doc."
    assert entry.start == to_local_naive(datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc))
    assert entry.end - entry.start == timedelta(hours=1)
    assert entry.reminder_minutes_before == 30
    assert entry.category == "General"


def test_ics_decode_outlook_export():
    """Test an Outlook export with floating times and categories."""
    [entry] = ICSCodec().decode(OUTLOOK_EXPORT)
    assert entry.title == "Budget planning"
    assert entry.start == datetime(2026, 3, 2, 14, 0)
    assert entry.end == datetime(2026, 3, 2, 15, 0)
    assert entry.category == "Business"
    assert entry.reminder_minutes_before == 60


def test_ics_decode_bom_is_accepted():
    data = b"\xef\xbb\xbf" + _vcalendar("SUMMARY:Bom\r\nDTSTART:20260301T090000\r\n")
    assert [e.title for e in ICSCodec().decode(data)] == ["Bom"]


def test_ics_decode_whitespace_only():
    assert ICSCodec().decode(b"  \r\n\n ") == []


def test_ics_decode_invalid_utf8_raises():
    with pytest.raises(CodecError):
        ICSCodec().decode(b"BEGIN:VCALENDAR\r\nSUMMARY:\xff\xfe\r\n")


def test_ics_decode_garbage_raises():
    """Test data that is not a calendar at all is a whole-file failure."""
    with pytest.raises(CodecError):
        ICSCodec().decode(b"this is not a calendar")


def test_module_level_helpers():
    """Test decode/encode helpers dispatch by dialect."""
    entry = Entry(
        title="Helper", start=datetime(2026, 4, 1, 9, 0), end=datetime(2026, 4, 1, 9, 30)
    )
    data = encode([entry], Dialect.ICS)
    assert b"VERSION:2.0" in data
    assert decode(data, Dialect.ICS) == [entry]


def test_ics_decode_malformed_dtend_falls_back_to_start():
    """Test an unparseable DTEND means end equals start."""
    data = _vcalendar(
        "SUMMARY:Bad end\r\nDTSTART:20260302T090000\r\nDTEND:garbage\r\n",
        "SUMMARY:Fine\r\nDTSTART:20260303T090000\r\nDTEND:20260303T100000\r\n",
    )
    bad, fine = ICSCodec().decode(data)
    assert bad.title == "Bad end"
    assert bad.end == bad.start == datetime(2026, 3, 2, 9, 0)
    assert fine.end == datetime(2026, 3, 3, 10, 0)


def test_ics_decode_malformed_trigger_keeps_event_without_reminder():
    """Test a broken VALARM costs the reminder, not the event or the file."""
    data = _vcalendar(
        "SUMMARY:Bad alarm\r\nDTSTART:20260302T090000\r\n"
        "BEGIN:VALARM\r\nACTION:DISPLAY\r\nTRIGGER:soon\r\nEND:VALARM\r\n",
        "SUMMARY:Good alarm\r\nDTSTART:20260303T090000\r\n"
        "BEGIN:VALARM\r\nACTION:DISPLAY\r\nTRIGGER:-PT15M\r\nEND:VALARM\r\n",
    )
    bad, good = ICSCodec().decode(data)
    assert bad.title == "Bad alarm"
    assert bad.start == datetime(2026, 3, 2, 9, 0)
    assert bad.reminder_minutes_before is None
    assert good.reminder_minutes_before == 15


def test_ics_roundtrip_keeps_literal_backslash_n():
    """Test Windows paths with backslash-N come back unchanged."""
    entry = Entry(
        title="Copy C:\\New folder",
        description="Files in C:\\New folder\\Notes, and C:\\n\\x",
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
    )
    [decoded] = _roundtrip([entry])
    assert decoded.title == entry.title
    assert decoded.description == entry.description


def test_ics_roundtrip_normalizes_crlf_to_newline():
    """Test CRLF line breaks come back as plain newlines."""
    entry = Entry(
        title="Notes",
        description="first\r\nsecond\nthird",
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
    )
    [decoded] = _roundtrip([entry])
    assert decoded.description == "first\nsecond\nthird"
