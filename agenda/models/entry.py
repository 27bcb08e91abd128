"""Entry model with Pydantic v2 validation."""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from agenda.exceptions import ValidationError

UNTITLED = "(no title)"
DEFAULT_CATEGORY = "General"

EntryKey = tuple[str, Optional[datetime]]


def to_local_naive(value: datetime) -> datetime:
    """Convert an aware datetime to naive local wall time.

    Naive values are already local and only lose sub-second precision, which
    neither wire format can carry.
    """
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(microsecond=0)


class Entry(BaseModel):
    """A calendar entry.

    Identity for change detection and reminders is ``(title, start)``; ``id``
    is carried through untouched and never used for matching.

    Text fields survive both file formats unchanged except for carriage
    returns, which neither format can carry: a CRLF line break is read back
    as a plain newline.
    """

    id: Optional[int] = None
    title: str = UNTITLED
    description: str = ""
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    reminder_minutes_before: Optional[int] = Field(default=None, ge=0)
    category: str = DEFAULT_CATEGORY
    recurrence_rule: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v):
        """Substitute the placeholder for a missing or blank title."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNTITLED
        return v

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v):
        return "" if v is None else v

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v):
        """Empty or missing categories land in the default bucket."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CATEGORY
        return v.strip() if isinstance(v, str) else v

    @field_validator("recurrence_rule", mode="before")
    @classmethod
    def blank_rule_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("start", "end", mode="after")
    @classmethod
    def normalize_datetime(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Bind aware values to the local zone; the model holds naive local time."""
        if v is None:
            return None
        return to_local_naive(v)

    @property
    def key(self) -> EntryKey:
        """Identity pair used for change detection and reminder de-duplication."""
        return (self.title, self.start)

    @property
    def has_reminder(self) -> bool:
        """True if the entry takes part in reminder scheduling."""
        return (
            self.start is not None
            and self.reminder_minutes_before is not None
            and self.reminder_minutes_before > 0
        )

    @property
    def reminder_at(self) -> Optional[datetime]:
        """When the reminder window opens, or None if no reminder is set."""
        if not self.has_reminder:
            return None
        return self.start - timedelta(minutes=self.reminder_minutes_before)

    @classmethod
    def create(
        cls,
        title: str,
        description: str | None,
        start: datetime | None,
        end: datetime | None,
        reminder_minutes_before: int | None = None,
        category: str | None = None,
        recurrence_rule: str | None = None,
    ) -> "Entry":
        """Build an entry from user input, enforcing the creation rules.

        Raises:
            ValidationError: If the title is blank, a bound is missing, the end
                is not strictly after the start, or the reminder is negative.
        """
        if title is None or not title.strip():
            raise ValidationError("Title is required")
        if start is None or end is None:
            raise ValidationError("Start and end are required")

        try:
            entry = cls(
                title=title.strip(),
                description=description,
                start=start,
                end=end,
                reminder_minutes_before=reminder_minutes_before,
                category=category,
                recurrence_rule=recurrence_rule,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid entry: {e}") from e

        if entry.end <= entry.start:
            raise ValidationError(
                f"End ({entry.end:%Y-%m-%d %H:%M}) must be after start "
                f"({entry.start:%Y-%m-%d %H:%M})"
            )
        return entry
