"""ICS calendar models and serialization module."""

from .exceptions import (
    AlarmSpecError,
    AlarmValidationError,
    DateTimeFormatError,
    DurationFormatError,
    ICSError,
    ICSParseError,
    ICSValidationError,
)
from .models import AlarmAction, Calendar, Event, EventStatus, Reminder
from .serializer import ICSSerializer, serialize_calendar

__all__ = [
    "AlarmAction",
    "AlarmSpecError",
    "AlarmValidationError",
    "Calendar",
    "DateTimeFormatError",
    "DurationFormatError",
    "Event",
    "EventStatus",
    "ICSError",
    "ICSParseError",
    "ICSSerializer",
    "ICSValidationError",
    "Reminder",
    "serialize_calendar",
]
