"""Event construction from user-entered strings.

Helpers here turn the loose values people type ("09:30", "2025-03-10",
"1h30m", "profile:medication") into validated ``Event`` fields. The
``EventBuilder`` collects raw values and resolves them all in ``build()``,
so timezones may be set after the times they apply to.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple, Union

from ..config.settings import ICSForgeSettings, get_settings
from ..parsing.alarms import parse_alarm_specs, split_alarm_input
from ..parsing.datetimes import DATE_LAYOUT, DATE_TIME_LAYOUT, parse_local_datetime
from ..parsing.durations import parse_human_duration
from ..timezone import get_timezone_service
from .exceptions import DateTimeFormatError, DurationFormatError, ICSValidationError
from .models import DEFAULT_ALARM_DESCRIPTION, AlarmAction, Calendar, Event, EventStatus, Reminder
from .serializer import ICSSerializer

logger = logging.getLogger(__name__)

PROFILE_PREFIX = "profile:"
DEFAULT_EVENT_DURATION = timedelta(hours=1)

_CLOCK_ONLY_RE = re.compile(r"^\d{1,2}:\d{2}$")


def looks_like_clock(value: str) -> bool:
    """True for a bare ``H:MM``/``HH:MM`` time without a date."""
    return bool(_CLOCK_ONLY_RE.match((value or "").strip()))


def prepend_today(value: str, tz: str = "") -> str:
    """Prefix a clock-only value with today's date in tz.

    Values that already carry a date are returned stripped but otherwise
    unchanged. An unknown tz falls back to local time.

    Example:
        ``prepend_today("09:30", "Europe/Madrid")`` -> ``"2025-03-10 09:30"``
    """
    value = (value or "").strip()
    if not value or not looks_like_clock(value):
        return value

    zone = get_timezone_service().resolve(tz)
    now = datetime.now(zone) if zone is not None else datetime.now()
    return f"{now.strftime(DATE_LAYOUT)} {value}"


def split_date_time(value: str) -> Tuple[str, str]:
    """Split ``YYYY-MM-DD[ HH:MM]`` (or ``T``-separated) into date and time."""
    normalized = (value or "").strip().replace("T", " ")
    date_part, _, time_part = normalized.partition(" ")
    return date_part.strip(), time_part.strip()


def parse_user_datetime(value: str, tz: str = "") -> datetime:
    """Parse ``YYYY-MM-DD``, ``YYYY-MM-DD HH:MM`` or ``HH:MM`` (today) in tz.

    Raises:
        DateTimeFormatError: If the value or timezone is invalid.
    """
    value = (value or "").strip()
    if not value:
        raise DateTimeFormatError("empty datetime", value)
    date_part, time_part = split_date_time(prepend_today(value, tz))
    return parse_local_datetime(date_part, time_part, tz)


def all_day_range(start_str: str, end_str: str = "") -> Tuple[datetime, datetime]:
    """Parse an all-day span.

    The end date is inclusive on input and exclusive on output, so a
    single-day event yields ``(D, D+1)``.

    Raises:
        DateTimeFormatError: If a date is not ``YYYY-MM-DD``.
        ICSValidationError: If the end date is before the start date.
    """
    try:
        start = datetime.strptime((start_str or "").strip(), DATE_LAYOUT)
    except ValueError as e:
        raise DateTimeFormatError(f"invalid start date: {start_str!r}", start_str) from e

    if not (end_str or "").strip():
        return start, start + timedelta(days=1)

    try:
        end_date = datetime.strptime(end_str.strip(), DATE_LAYOUT)
    except ValueError as e:
        raise DateTimeFormatError(f"invalid end date: {end_str!r}", end_str) from e

    if end_date < start:
        raise ICSValidationError("end date must be on or after start date", end_str)
    return start, end_date + timedelta(days=1)


def timed_range(
    start: datetime,
    end: Optional[datetime] = None,
    duration: Optional[Union[str, timedelta]] = None,
) -> Tuple[datetime, datetime]:
    """Resolve the end of a timed event.

    An explicit end wins over a duration; with neither the event lasts one
    hour.

    Raises:
        DurationFormatError: If duration is a string that does not parse.
        ICSValidationError: If the duration is not positive or the end is
            not after the start.
    """
    if end is None:
        if duration is None or (isinstance(duration, str) and not duration.strip()):
            length = DEFAULT_EVENT_DURATION
        elif isinstance(duration, str):
            length = parse_human_duration(duration)
        else:
            length = duration
        if length <= timedelta(0):
            raise ICSValidationError("duration must be > 0", str(duration))
        end = start + length

    if end <= start:
        raise ICSValidationError("end time must be after start time", end.isoformat())
    return start, end


def end_from_duration(start_str: str, end_str: str, duration_str: str, tz: str = "") -> str:
    """Compute an end string from start plus duration.

    An explicit end is returned as-is; with no duration either, ``""`` is
    returned. The result keeps the shape of the start: ``YYYY-MM-DD HH:MM``
    when the start has a time, otherwise a bare date.

    Raises:
        DateTimeFormatError: If the start cannot be parsed.
        DurationFormatError: If the duration cannot be parsed.
    """
    end_str = (end_str or "").strip()
    if end_str:
        return end_str

    duration_str = (duration_str or "").strip()
    if not duration_str:
        return ""

    start = parse_user_datetime(start_str, tz)
    end = start + parse_human_duration(duration_str)
    if ":" in start_str:
        return end.strftime(DATE_TIME_LAYOUT)
    return end.strftime(DATE_LAYOUT)


def parse_exdates(values: Iterable[str], tz: str = "", all_day: bool = False) -> List[datetime]:
    """Parse EXDATE values so they match the shape of the event start.

    Every value of an all-day event becomes a naive midnight date. For timed
    events values are localized like the start, so a date-only value is
    midnight in tz (or local midnight when tz is blank).

    Raises:
        DateTimeFormatError: If a value cannot be parsed.
    """
    out: List[datetime] = []
    for raw in values:
        date_part, time_part = split_date_time(raw)
        if not date_part:
            continue

        try:
            if all_day:
                out.append(datetime.strptime(date_part, DATE_LAYOUT))
            else:
                out.append(parse_local_datetime(date_part, time_part, tz))
        except (ValueError, DateTimeFormatError) as e:
            raise DateTimeFormatError(f"invalid exdate {raw!r}", raw) from e
    return out


def expand_alarm_profiles(
    specs: Iterable[str], settings: Optional[ICSForgeSettings] = None
) -> List[str]:
    """Replace ``profile:<name>`` entries with the profile's specs.

    Unknown profiles are kept verbatim so the alarm parser reports them.
    """
    settings = settings or get_settings()
    expanded: List[str] = []
    for spec in specs:
        spec = spec.strip()
        if not spec:
            continue
        if not spec.startswith(PROFILE_PREFIX):
            expanded.append(spec)
            continue

        name = spec[len(PROFILE_PREFIX):].strip()
        profile = settings.get_alarm_profile(name)
        if profile is None:
            logger.warning(f"Unknown alarm profile {name!r}")
            expanded.append(spec)
        else:
            expanded.extend(profile)
    return expanded


def new_calendar(name: str = "", settings: Optional[ICSForgeSettings] = None) -> Calendar:
    """Create a calendar carrying the configured metadata."""
    settings = settings or get_settings()
    calendar = Calendar(
        prod_id=settings.prod_id,
        method=settings.calendar_method,
        name=name,
        include_vtz=settings.include_vtimezone,
        fold_limit=settings.fold_limit,
    )
    calendar.set_default_timezone(settings.default_timezone)
    return calendar


def serializer_from_settings(settings: Optional[ICSForgeSettings] = None) -> ICSSerializer:
    """Create a serializer using the configured fold limit."""
    settings = settings or get_settings()
    return ICSSerializer(settings.fold_limit)


class EventBuilder:
    """Fluent construction of a validated ``Event``.

    Example:
        >>> event = (
        ...     EventBuilder("Standup")
        ...     .timed("2025-03-10 09:30", duration="15m")
        ...     .timezone("Europe/Madrid")
        ...     .alarms("profile:single")
        ...     .build()
        ... )
    """

    def __init__(self, summary: str, settings: Optional[ICSForgeSettings] = None) -> None:
        self.settings = settings or get_settings()
        self._summary = summary
        self._description = ""
        self._location = ""
        self._all_day = False
        self._start = ""
        self._end = ""
        self._duration = ""
        self._start_tz = ""
        self._end_tz = ""
        self._rrule = ""
        self._status = EventStatus.CONFIRMED.value
        self._priority = 0
        self._exdates: List[str] = []
        self._alarm_specs: List[str] = []
        self._attendees: List[str] = []
        self._categories: List[str] = []

    def description(self, text: str) -> "EventBuilder":
        self._description = text
        return self

    def location(self, text: str) -> "EventBuilder":
        self._location = text
        return self

    def timed(self, start: str, end: str = "", duration: str = "") -> "EventBuilder":
        """Set a timed span; end may be a clock, a datetime or a duration."""
        self._all_day = False
        self._start, self._end, self._duration = start, end, duration
        return self

    def all_day(self, start: str, end: str = "") -> "EventBuilder":
        """Set an all-day span with an inclusive end date."""
        self._all_day = True
        self._start, self._end, self._duration = start, end, ""
        return self

    def timezone(self, start_tz: str, end_tz: str = "") -> "EventBuilder":
        """Set zones; the end zone defaults to the start zone."""
        self._start_tz = (start_tz or "").strip()
        self._end_tz = (end_tz or "").strip() or self._start_tz
        return self

    def rrule(self, rule: str) -> "EventBuilder":
        self._rrule = rule.strip()
        return self

    def exclude(self, *values: str) -> "EventBuilder":
        self._exdates.extend(values)
        return self

    def alarms(self, *specs: str) -> "EventBuilder":
        """Add raw alarm input; each argument may hold several specs."""
        for raw in specs:
            self._alarm_specs.extend(split_alarm_input(raw))
        return self

    def attendee(self, email: str) -> "EventBuilder":
        self._attendees.append(email)
        return self

    def category(self, name: str) -> "EventBuilder":
        self._categories.append(name)
        return self

    def priority(self, value: int) -> "EventBuilder":
        if not 0 <= value <= 9:
            raise ICSValidationError("priority must be between 0 and 9", str(value))
        self._priority = value
        return self

    def status(self, value: str) -> "EventBuilder":
        status = (value or "").strip().upper()
        if status not in {s.value for s in EventStatus}:
            raise ICSValidationError(f"invalid status {value!r}", value)
        self._status = status
        return self

    def build(self) -> Event:
        """Resolve all collected values into an ``Event``.

        Raises:
            ICSError: If any value is malformed or inconsistent.
        """
        start_tz = self._start_tz or self.settings.default_timezone
        end_tz = self._end_tz or start_tz

        if self._all_day:
            start, end = all_day_range(self._start, self._end)
            event = Event(summary=self._summary, start=start, end=end, all_day=True)
        else:
            start, end = self._timed_span(start_tz, end_tz)
            event = Event(summary=self._summary, start=start, end=end)
            event.set_start_timezone(start_tz)
            event.set_end_timezone(end_tz)

        event.description = self._description
        event.location = self._location
        event.rrule = self._rrule
        event.status = self._status
        event.priority = self._priority
        event.attendees = list(self._attendees)
        event.categories = list(self._categories)
        event.exdates = parse_exdates(self._exdates, start_tz, self._all_day)

        for alarm in self._build_alarms(start_tz):
            event.add_alarm(alarm)

        logger.debug(
            f"Built event {event.uid} ({len(event.alarms)} alarms, all_day={event.all_day})"
        )
        return event

    def _timed_span(self, start_tz: str, end_tz: str) -> Tuple[datetime, datetime]:
        start = parse_user_datetime(self._start, start_tz)

        end_value = (self._end or "").strip()
        if not end_value:
            return timed_range(start, duration=self._duration or None)

        # An end like "1h30m" is a duration unless it looks like a clock
        if not looks_like_clock(end_value) and not split_date_time(end_value)[1]:
            try:
                return timed_range(start, duration=parse_human_duration(end_value))
            except DurationFormatError:
                pass

        return timed_range(start, end=parse_user_datetime(end_value, end_tz))

    def _build_alarms(self, default_tz: str) -> List[Reminder]:
        specs = expand_alarm_profiles(self._alarm_specs, self.settings)
        reminders = parse_alarm_specs(specs, default_tz)

        description = self.settings.default_alarm_description
        if description and description != DEFAULT_ALARM_DESCRIPTION:
            for reminder in reminders:
                if (
                    reminder.action == AlarmAction.DISPLAY.value
                    and reminder.description == DEFAULT_ALARM_DESCRIPTION
                ):
                    reminder.description = description
        return reminders
