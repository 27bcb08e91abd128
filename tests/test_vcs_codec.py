"""Tests for the VCS codec."""

import warnings
from datetime import datetime, timezone

import pytest

from agenda.codec import DateFallback, Dialect, VCSCodec, decode
from agenda.codec.vcs_codec import (
    escape_text,
    parse_datetime,
    split_content_line,
    unescape_text,
    unfold_lines,
)
from agenda.exceptions import CodecError
from agenda.models.entry import UNTITLED, Entry, to_local_naive


def _vcalendar(*events: str) -> bytes:
    body = "".join(f"BEGIN:VEVENT\r\n{e}END:VEVENT\r\n" for e in events)
    return f"BEGIN:VCALENDAR\r\nVERSION:1.0\r\n{body}END:VCALENDAR\r\n".encode("utf-8")


def test_vcs_only_title_yields_no_entries():
    """Test an event with only SUMMARY (no dates) is dropped."""
    assert VCSCodec().decode(_vcalendar("SUMMARY:Only Title\r\n")) == []


def test_vcs_meeting_example():
    """Test the basic SUMMARY/DTSTART/DTEND event."""
    data = _vcalendar(
        "SUMMARY:Meeting\r\nDTSTART:20251001T140000\r\nDTEND:20251001T150000\r\n"
    )
    [entry] = VCSCodec().decode(data)
    assert entry.title == "Meeting"
    assert entry.start == datetime(2025, 10, 1, 14, 0)
    assert entry.end == datetime(2025, 10, 1, 15, 0)
    assert entry.description == ""
    assert entry.category == "General"


def test_vcs_roundtrip_preserves_fields():
    """Test encode then decode reproduces every VCS field."""
    entry = Entry(
        title="Review; part 1, draft",
        description="First line\nSecond line with \\n literal\nDritte Zeile ✓",
        start=datetime(2026, 4, 1, 9, 30),
        end=datetime(2026, 4, 1, 11, 0),
        reminder_minutes_before=45,
        category="Work, Life",
    )
    [decoded] = VCSCodec().decode(VCSCodec().encode([entry]))
    assert decoded == entry


def test_vcs_roundtrip_long_unicode_description():
    """Test folding keeps a multi-kilobyte multi-script description intact."""
    description = "\n".join(
        f"{i}: 中文 한국어 العربية 🎉👩‍💻 " + "y" * 90 for i in range(150)
    )
    entry = Entry(
        title="Заметки 📝",
        description=description,
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
    )
    data = VCSCodec().encode([entry])
    assert all(len(line) <= 75 for line in data.split(b"\r\n"))
    [decoded] = VCSCodec().decode(data)
    assert decoded.title == entry.title
    assert decoded.description == description


def test_vcs_encode_header_and_line_endings():
    start = datetime(2026, 4, 1, 9, 0)
    data = VCSCodec().encode([Entry(title="A", start=start, end=start)])
    text = data.decode("utf-8")
    assert text.startswith("BEGIN:VCALENDAR\r\nVERSION:1.0\r\n")
    assert "PRODID:-//Agenda Sync//VCS 1.0//EN\r\n" in text
    assert "DTSTART:20260401T090000\r\n" in text
    assert text.endswith("END:VCALENDAR\r\n")


def test_vcs_encode_dalarm():
    """Test a positive reminder is written as an absolute DALARM."""
    entry = Entry(
        title="A",
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
        reminder_minutes_before=90,
    )
    text = VCSCodec().encode([entry]).decode("utf-8")
    assert "DALARM:20260401T073000;;0;Reminder" in text


def test_vcs_encode_skips_none_and_startless_entries():
    good = Entry(
        title="Kept", start=datetime(2026, 4, 1, 9, 0), end=datetime(2026, 4, 1, 10, 0)
    )
    codec = VCSCodec()
    decoded = codec.decode(codec.encode([None, Entry(title="No start"), good]))
    assert [e.title for e in decoded] == ["Kept"]
    assert codec.decode(codec.encode(None)) == []


def test_vcs_decode_malformed_start_skip():
    data = _vcalendar("SUMMARY:Broken\r\nDTSTART:2025-13-45\r\n")
    assert VCSCodec(date_fallback=DateFallback.SKIP).decode(data) == []


def test_vcs_decode_malformed_start_now():
    """Test NOW dates an unparseable DTSTART at the current time."""
    now = datetime(2026, 1, 2, 3, 4, 5)
    data = _vcalendar("SUMMARY:Broken\r\nDTSTART:tomorrow\r\nDTEND:garbage\r\n")
    [entry] = VCSCodec(date_fallback=DateFallback.NOW, clock=lambda: now).decode(data)
    assert entry.title == "Broken"
    assert entry.start == now
    assert entry.end == now


def test_vcs_decode_missing_start_ignores_now_fallback():
    data = _vcalendar("SUMMARY:No date at all\r\n")
    assert VCSCodec(date_fallback=DateFallback.NOW).decode(data) == []


def test_vcs_decode_missing_summary():
    [entry] = VCSCodec().decode(_vcalendar("DTSTART:20260301T090000\r\n"))
    assert entry.title == UNTITLED
    assert entry.end == entry.start


def test_vcs_decode_quoted_printable():
    """Test quoted-printable values with soft line breaks are decoded."""
    data = _vcalendar(
        "SUMMARY;ENCODING=QUOTED-PRINTABLE;CHARSET=UTF-8:Caf=C3=A9 meeting\r\n"
        "DESCRIPTION;QUOTED-PRINTABLE:Line one=0D=0ALine =\r\n"
        "two\r\n"
        "DTSTART:20260301T090000\r\n"
    )
    [entry] = VCSCodec().decode(data)
    assert entry.title == "Café meeting"
    assert entry.description == "Line one\r\nLine two"


def test_vcs_decode_utc_and_date_forms():
    data = _vcalendar(
        "SUMMARY:Utc\r\nDTSTART:20260301T090000Z\r\n",
        "SUMMARY:Day\r\nDTSTART:20260302\r\n",
        "SUMMARY:Iso\r\nDTSTART:2026-03-03T10:15\r\n",
    )
    utc, day, iso = VCSCodec().decode(data)
    assert utc.start == to_local_naive(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
    assert day.start == datetime(2026, 3, 2, 0, 0)
    assert iso.start == datetime(2026, 3, 3, 10, 15)


def test_vcs_decode_categories_and_dalarm():
    """Test the first category and the DALARM lead time are read."""
    data = _vcalendar(
        "SUMMARY:Call\r\nCATEGORIES:PHONE CALL;BUSINESS\r\n"
        "DTSTART:20260301T090000\r\nDALARM:20260301T084500;PT5M;2;Call now\r\n"
    )
    [entry] = VCSCodec().decode(data)
    assert entry.category == "PHONE CALL"
    assert entry.reminder_minutes_before == 15


def test_vcs_decode_alarm_after_start_is_ignored():
    data = _vcalendar("DTSTART:20260301T090000\r\nDALARM:20260301T093000\r\n")
    [entry] = VCSCodec().decode(data)
    assert entry.reminder_minutes_before is None


def test_vcs_decode_ignores_lines_outside_events():
    data = (
        b"BEGIN:VCALENDAR\r\nVERSION:1.0\r\nSUMMARY:Stray\r\n\r\n"
        b"BEGIN:VTODO\r\nSUMMARY:Task\r\nDTSTART:20260301T090000\r\nEND:VTODO\r\n"
        b"END:VCALENDAR\r\n"
    )
    assert VCSCodec().decode(data) == []


def test_vcs_decode_invalid_utf8_raises():
    with pytest.raises(CodecError):
        VCSCodec().decode(b"BEGIN:VCALENDAR\r\nSUMMARY:\xff\r\n")


def test_vcs_module_level_decode():
    data = _vcalendar("SUMMARY:Helper\r\nDTSTART:20260301T090000\r\n")
    assert [e.title for e in decode(data, Dialect.VCS)] == ["Helper"]


@pytest.mark.parametrize(
    "text",
    ["plain", "comma, semi; colon:", "back\\slash", "new\nline", "literal \\n", ""],
)
def test_escape_roundtrip(text):
    assert unescape_text(escape_text(text)) == text


def test_escape_drops_carriage_return():
    assert escape_text("a\r\nb") == "a\\nb"


@pytest.mark.parametrize(
    "value,expected",
    [
        ("20251001T140000", datetime(2025, 10, 1, 14, 0)),
        ("20251001t140000", datetime(2025, 10, 1, 14, 0)),
        (" 20251001 ", datetime(2025, 10, 1)),
        ("2025-10-01T14:00:30", datetime(2025, 10, 1, 14, 0, 30)),
        ("20251301T140000", None),
        ("", None),
        ("soon", None),
    ],
)
def test_parse_datetime(value, expected):
    assert parse_datetime(value) == expected


def test_unfold_lines():
    content = "DESCRIPTION:abc\r\n def\r\n\tghi\nSUMMARY:x\rEND:VEVENT"
    assert unfold_lines(content) == [
        "DESCRIPTION:abcdefghi",
        "SUMMARY:x",
        "END:VEVENT",
    ]


def test_split_content_line():
    name, params, value = split_content_line(
        "summary;CHARSET=utf-8;QUOTED-PRINTABLE:a:b"
    )
    assert name == "SUMMARY"
    assert params == {"CHARSET": "utf-8", "ENCODING": "QUOTED-PRINTABLE"}
    assert value == "a:b"


def test_split_content_line_respects_quoted_parameters():
    """Test a colon inside a quoted parameter value does not end the name."""
    name, params, value = split_content_line('DESCRIPTION;ALTREP="cid:x":Hello')
    assert name == "DESCRIPTION"
    assert params == {"ALTREP": "cid:x"}
    assert value == "Hello"


def test_split_content_line_keeps_value_escapes():
    name, _, value = split_content_line(r"SUMMARY:a\, b\; c\\n")
    assert name == "SUMMARY"
    assert value == r"a\, b\; c\\n"


def test_vcs_decode_quoted_parameter_value():
    data = _vcalendar(
        'DESCRIPTION;ALTREP="cid:part1@example.org":Agenda attached\r\n'
        "DTSTART:20260301T090000\r\n"
    )
    [entry] = VCSCodec().decode(data)
    assert entry.description == "Agenda attached"


def test_vcs_decode_text_without_calendar_raises():
    """Test text with no VCALENDAR is a whole-file failure, not an empty calendar."""
    with pytest.raises(CodecError):
        VCSCodec().decode(b"<<corrupted: 3 events>>")
    with pytest.raises(CodecError):
        VCSCodec().decode(b"BEGIN:VEVENT\r\nDTSTART:20260301T090000\r\nEND:VEVENT\r\n")


def test_vcs_decode_whitespace_only():
    assert VCSCodec().decode(b" \r\n ") == []


def test_vcs_encode_emits_no_deprecation_warnings():
    entry = Entry(
        title="Long " + "x" * 200,
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
    )
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        data = VCSCodec().encode([entry])
    assert b"\r\n " in data
    [decoded] = VCSCodec().decode(data)
    assert decoded.title == entry.title


def test_vcs_roundtrip_normalizes_crlf_to_newline():
    """Test CRLF line breaks come back as plain newlines."""
    entry = Entry(
        title="Notes",
        description="first\r\nsecond\nthird",
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
    )
    [decoded] = VCSCodec().decode(VCSCodec().encode([entry]))
    assert decoded.description == "first\nsecond\nthird"


def test_vcs_roundtrip_keeps_literal_backslash_n():
    entry = Entry(
        title="Copy C:\\New folder",
        description="Files in C:\\New folder\\Notes",
        start=datetime(2026, 4, 1, 9, 0),
        end=datetime(2026, 4, 1, 10, 0),
    )
    [decoded] = VCSCodec().decode(VCSCodec().encode([entry]))
    assert decoded.title == entry.title
    assert decoded.description == entry.description
