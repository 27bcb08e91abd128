import os
from datetime import datetime

import pytest

from agenda.config import AgendaConfig
from agenda.models.entry import Entry


@pytest.fixture(autouse=True)
def clean_agenda_env(monkeypatch):
    """Keep AGENDA_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("AGENDA_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config(tmp_path):
    """Configuration pointing at a calendar inside tmp_path."""
    return AgendaConfig(
        calendar_path=tmp_path / "data" / "calendar.ics",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def vcs_config(tmp_path):
    """Configuration with a VCS calendar file."""
    return AgendaConfig(
        calendar_path=tmp_path / "data" / "calendar.vcs",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def sample_entries():
    """A small set of entries covering every field."""
    return [
        Entry(
            title="Team meeting",
            description="Weekly sync\nRoom 4.12",
            start=datetime(2026, 3, 2, 9, 0),
            end=datetime(2026, 3, 2, 10, 0),
            reminder_minutes_before=15,
            category="Work",
        ),
        Entry(
            title="Dentist",
            start=datetime(2026, 3, 4, 14, 30),
            end=datetime(2026, 3, 4, 15, 0),
            reminder_minutes_before=60,
            category="Health",
        ),
        Entry(
            title="Running club",
            description="Bring shoes",
            start=datetime(2026, 3, 5, 18, 0),
            end=datetime(2026, 3, 5, 19, 0),
        ),
    ]
