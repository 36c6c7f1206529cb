"""Data models for ICS calendar generation."""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

if TYPE_CHECKING:
    from .serializer import ICSSerializer

DEFAULT_PROD_ID = "-//ICSForge//ICSForge Calendar Generator//EN"
UID_DOMAIN = "icsforge"
DEFAULT_ALARM_DESCRIPTION = "Reminder"
DEFAULT_FOLD_LIMIT = 75


def generate_uid() -> str:
    """Generate a globally unique event identifier (``<uuid4>@icsforge``)."""
    return f"{uuid.uuid4()}@{UID_DOMAIN}"


def utc_now() -> datetime:
    """Current time in UTC, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class EventStatus(str, Enum):
    """STATUS values for VEVENT."""

    CONFIRMED = "CONFIRMED"
    TENTATIVE = "TENTATIVE"
    CANCELLED = "CANCELLED"


class AlarmAction(str, Enum):
    """ACTION values for VALARM.

    DISPLAY is the most portable and is the default everywhere.
    """

    DISPLAY = "DISPLAY"
    EMAIL = "EMAIL"
    AUDIO = "AUDIO"


class Reminder(BaseModel):
    """A VALARM attached to an event.

    The trigger is either relative (``trigger_duration`` from the event
    start, negative meaning before) or absolute (``trigger_time`` in UTC).
    """

    action: str = Field(default=AlarmAction.DISPLAY.value, description="Alarm action")
    summary: str = Field(default="", description="Alarm summary (useful for EMAIL)")
    description: str = Field(default="", description="Alarm description")

    trigger_is_relative: bool = Field(default=True, description="Relative trigger flag")
    trigger_duration: timedelta = Field(
        default=timedelta(0), description="Offset from event start; negative means before"
    )
    trigger_time: Optional[datetime] = Field(default=None, description="Absolute UTC trigger")

    repeat: Optional[int] = Field(default=None, description="Number of repeats")
    repeat_duration: Optional[timedelta] = Field(
        default=None, description="Interval between repeats"
    )

    @field_validator("trigger_time")
    @classmethod
    def normalize_trigger_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Store absolute triggers in UTC; naive values are taken as UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_repeat_pair(self) -> "Reminder":
        """Repeat count and interval go together; absolute triggers need a time."""
        if (self.repeat is None) != (self.repeat_duration is None):
            raise ValueError("repeat and repeat_duration must be provided together")
        if not self.trigger_is_relative and self.trigger_time is None:
            raise ValueError("absolute reminders require trigger_time")
        return self

    @classmethod
    def relative(
        cls, offset: timedelta, description: str = DEFAULT_ALARM_DESCRIPTION, **kwargs
    ) -> "Reminder":
        """Create a relative DISPLAY reminder."""
        return cls(
            trigger_is_relative=True,
            trigger_duration=offset,
            description=description,
            **kwargs,
        )

    @classmethod
    def absolute(
        cls, when: datetime, description: str = DEFAULT_ALARM_DESCRIPTION, **kwargs
    ) -> "Reminder":
        """Create an absolute DISPLAY reminder."""
        return cls(
            trigger_is_relative=False,
            trigger_time=when,
            description=description,
            **kwargs,
        )


class Event(BaseModel):
    """A single VEVENT.

    The model stores whatever it is given; ordering of start and end is
    checked by the builder, not here.
    """

    uid: str = Field(default_factory=generate_uid, description="Globally unique identifier")
    summary: str = Field(default="", description="Event title")
    description: str = Field(default="", description="Event description")
    location: str = Field(default="", description="Event location")

    start: datetime = Field(..., description="Start instant")
    end: Optional[datetime] = Field(default=None, description="End instant")
    start_tz: str = Field(default="", description="TZID for DTSTART")
    end_tz: str = Field(default="", description="TZID for DTEND")
    all_day: bool = Field(default=False, description="All-day event flag")

    attendees: List[str] = Field(default_factory=list, description="Attendee email addresses")
    categories: List[str] = Field(default_factory=list, description="Event categories")
    priority: int = Field(default=0, description="Priority 1-9, 0 to omit")
    status: str = Field(default=EventStatus.CONFIRMED.value, description="Event status")

    created: Optional[datetime] = Field(default_factory=utc_now, description="Creation time")
    last_modified: Optional[datetime] = Field(
        default_factory=utc_now, description="Last modification time"
    )
    sequence: int = Field(default=0, description="Revision counter, 0 to omit")

    rrule: str = Field(default="", description="Recurrence rule, passed through verbatim")
    exdates: List[datetime] = Field(default_factory=list, description="Excluded occurrences")
    alarms: List[Reminder] = Field(default_factory=list, description="Reminders")

    @classmethod
    def new(cls, summary: str, start: datetime, end: Optional[datetime] = None) -> "Event":
        """Create a new event with required fields and fresh timestamps."""
        return cls(summary=summary, start=start, end=end)

    def set_timezone(self, tz: str) -> None:
        """Set the timezone for both start and end times."""
        self.start_tz = tz
        self.end_tz = tz

    def set_start_timezone(self, tz: str) -> None:
        """Set only the start timezone (itineraries crossing zones)."""
        self.start_tz = tz

    def set_end_timezone(self, tz: str) -> None:
        """Set only the end timezone (itineraries crossing zones)."""
        self.end_tz = tz

    def add_attendee(self, email: str) -> None:
        """Add an attendee email address."""
        self.attendees.append(email)

    def add_category(self, category: str) -> None:
        """Add a category."""
        self.categories.append(category)

    def add_alarm(self, alarm: Reminder) -> None:
        """Attach a reminder."""
        self.alarms.append(alarm)

    def touch(self) -> None:
        """Record a revision: bump SEQUENCE and refresh LAST-MODIFIED."""
        self.sequence += 1
        self.last_modified = utc_now()

    def to_ics(self, serializer: Optional["ICSSerializer"] = None) -> str:
        """Render this event as a VEVENT block."""
        from .serializer import ICSSerializer

        return (serializer or ICSSerializer()).serialize_event(self)


class Calendar(BaseModel):
    """A VCALENDAR holding events in insertion order."""

    prod_id: str = Field(default=DEFAULT_PROD_ID, description="PRODID")
    version: str = Field(default="2.0", description="VERSION")
    cal_scale: str = Field(default="GREGORIAN", description="CALSCALE")
    method: str = Field(default="PUBLISH", description="METHOD for exported files")
    name: str = Field(default="", description="X-WR-CALNAME")
    default_tz: str = Field(default="", description="X-WR-TIMEZONE")
    include_vtz: bool = Field(default=False, description="Embed static VTIMEZONE blocks")
    fold_limit: int = Field(
        default=DEFAULT_FOLD_LIMIT, description="Line folding limit in octets, <= 0 disables"
    )
    events: List[Event] = Field(default_factory=list, description="Calendar events")

    @classmethod
    def new(cls) -> "Calendar":
        """Create an empty calendar with default metadata."""
        return cls()

    def add_event(self, event: Event) -> None:
        """Append a copy of the event.

        When no default timezone is set yet, an event whose start and end
        zones agree supplies it.
        """
        self.events.append(event.model_copy(deep=True))

        if not self.default_tz.strip():
            tz = event.start_tz.strip()
            if tz and event.end_tz.strip() == tz:
                self.default_tz = tz

    def set_default_timezone(self, tz: str) -> None:
        """Set the X-WR-TIMEZONE value."""
        self.default_tz = (tz or "").strip()

    def to_ics(self, serializer: Optional["ICSSerializer"] = None) -> str:
        """Render the whole calendar."""
        from .serializer import ICSSerializer

        return (serializer or ICSSerializer(self.fold_limit)).serialize(self)
