"""iCalendar serializer producing RFC 5545 text.

Output is byte-exact: CRLF line endings, 75-octet folding with a single
space continuation prefix, and TEXT escaping of backslash, semicolon, comma
and newline.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, cast

from ..timezone import ensure_utc, get_timezone_service
from .models import (
    DEFAULT_ALARM_DESCRIPTION,
    DEFAULT_FOLD_LIMIT,
    AlarmAction,
    Calendar,
    Event,
    EventStatus,
    Reminder,
)
from .vtimezone import known_vtimezone, unique_tzids

logger = logging.getLogger(__name__)

CRLF = "\r\n"
MAX_LINE_OCTETS = DEFAULT_FOLD_LIMIT

UTC_FORMAT = "%Y%m%dT%H%M%SZ"
LOCAL_FORMAT = "%Y%m%dT%H%M%S"
DATE_FORMAT = "%Y%m%d"


def escape_text(text: str) -> str:
    """Escape a TEXT value.

    CRLF and lone CR are normalized first, then backslash, semicolon, comma
    and newline are escaped in that order.
    """
    if not text:
        return ""
    text = text.replace("\r\n", "\n")
    text = text.replace("\r", "")
    text = text.replace("\\", "\\\\")
    text = text.replace(";", "\\;")
    text = text.replace(",", "\\,")
    return text.replace("\n", "\\n")


def normalize_user_newlines(text: str) -> str:
    """Turn user-typed two-character ``\\n`` sequences into real newlines.

    Applied before ``escape_text`` so the output carries ``\\n`` rather than
    ``\\\\n``.
    """
    if not text:
        return text
    return text.replace("\\n", "\n")


def fold_line(line: str, limit: int = MAX_LINE_OCTETS) -> List[str]:
    """Split a logical line into segments of at most limit UTF-8 octets.

    Whole code points are accumulated until the next one would overflow, so
    a multi-byte character is never split. Segments carry no CRLF or
    continuation space. A limit of zero or less disables folding.
    """
    if limit <= 0 or len(line.encode("utf-8")) <= limit:
        return [line]

    segments: List[str] = []
    current: List[str] = []
    current_bytes = 0

    for char in line:
        char_bytes = len(char.encode("utf-8"))
        if current and current_bytes + char_bytes > limit:
            segments.append("".join(current))
            current = []
            current_bytes = 0
        current.append(char)
        current_bytes += char_bytes

    if current:
        segments.append("".join(current))
    return segments


def format_duration(duration: timedelta) -> str:
    """Format a timedelta as an RFC 5545 DURATION.

    Examples: ``PT0S``, ``-PT15M``, ``PT1H30M``, ``P1DT2H``.
    Sub-second precision is dropped.
    """
    total = int(duration.total_seconds())
    if total == 0:
        return "PT0S"

    negative = total < 0
    total = abs(total)
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)

    parts = ["-P" if negative else "P"]
    if days:
        parts.append(f"{days}D")
    if hours or minutes or seconds:
        parts.append("T")
        if hours:
            parts.append(f"{hours}H")
        if minutes:
            parts.append(f"{minutes}M")
        if seconds:
            parts.append(f"{seconds}S")
    return "".join(parts)


def format_utc(dt: datetime) -> str:
    """Format as ``YYYYMMDDTHHMMSSZ``; naive values are taken as UTC."""
    return ensure_utc(dt).strftime(UTC_FORMAT)


def format_local(dt: datetime, tzid: str) -> str:
    """Format the wall-clock time of dt in tzid as ``YYYYMMDDTHHMMSS``.

    Aware values are converted to tzid when it resolves; otherwise the stored
    wall-clock time is used as-is.
    """
    return get_timezone_service().to_zone(dt, tzid).strftime(LOCAL_FORMAT)


def format_date(dt: datetime) -> str:
    """Format as ``YYYYMMDD``."""
    return dt.strftime(DATE_FORMAT)


class ICSSerializer:
    """Render Calendar and Event models as iCalendar text."""

    def __init__(self, fold_limit: int = MAX_LINE_OCTETS) -> None:
        """Initialize serializer.

        Args:
            fold_limit: Maximum octets per physical line; <= 0 disables folding
        """
        self.fold_limit = fold_limit

    def serialize(self, calendar: Calendar) -> str:
        """Render a full VCALENDAR."""
        lines: List[str] = []
        self._write_line(lines, "BEGIN:VCALENDAR")
        self._write_prop(lines, "PRODID", calendar.prod_id)
        self._write_prop(lines, "VERSION", calendar.version)
        self._write_prop(lines, "CALSCALE", calendar.cal_scale)
        if calendar.method.strip():
            self._write_prop(lines, "METHOD", calendar.method)
        if calendar.name.strip():
            self._write_prop(lines, "X-WR-CALNAME", escape_text(calendar.name))
        if calendar.default_tz.strip():
            self._write_prop(lines, "X-WR-TIMEZONE", calendar.default_tz)

        if calendar.include_vtz:
            pairs = [(e.start_tz, e.end_tz) for e in calendar.events if not e.all_day]
            for tzid in unique_tzids(pairs):
                block = known_vtimezone(tzid)
                if block:
                    lines.append(block)
                else:
                    logger.debug(f"No embedded VTIMEZONE for {tzid}, skipping")

        for event in calendar.events:
            lines.append(self.serialize_event(event))

        self._write_line(lines, "END:VCALENDAR")
        logger.debug(f"Serialized calendar with {len(calendar.events)} events")
        return "".join(lines)

    def serialize_event(self, event: Event) -> str:
        """Render a single VEVENT block."""
        lines: List[str] = []
        self._write_line(lines, "BEGIN:VEVENT")
        self._write_basic_properties(lines, event)
        self._write_datetime_properties(lines, event)
        self._write_recurrence_properties(lines, event)
        self._write_optional_properties(lines, event)
        for alarm in event.alarms:
            self._write_alarm(lines, alarm)
        self._write_timestamps(lines, event)
        self._write_line(lines, "END:VEVENT")
        return "".join(lines)

    def _write_basic_properties(self, lines: List[str], event: Event) -> None:
        self._write_prop(lines, "UID", event.uid)

        # DTSTAMP: creation time if known, else now
        dtstamp = event.created or datetime.now(timezone.utc)
        self._write_prop(lines, "DTSTAMP", format_utc(dtstamp))

        summary = event.summary.strip()
        if summary:
            self._write_prop(lines, "SUMMARY", escape_text(summary))

        description = event.description.strip()
        if description:
            self._write_prop(lines, "DESCRIPTION", escape_text(normalize_user_newlines(description)))

        location = event.location.strip()
        if location:
            self._write_prop(lines, "LOCATION", escape_text(normalize_user_newlines(location)))

    def _write_datetime_properties(self, lines: List[str], event: Event) -> None:
        if event.all_day:
            end = event.end
            # DTEND is exclusive for all-day events
            if end is None or end.date() <= event.start.date():
                end = event.start + timedelta(days=1)
            self._write_prop(lines, "DTSTART;VALUE=DATE", format_date(event.start))
            self._write_prop(lines, "DTEND;VALUE=DATE", format_date(end))
            return

        self._write_instant(lines, "DTSTART", event.start, event.start_tz)
        if event.end is not None:
            self._write_instant(lines, "DTEND", event.end, event.end_tz)

    def _write_instant(self, lines: List[str], name: str, dt: datetime, tzid: str) -> None:
        tz = tzid.strip()
        if tz:
            self._write_prop(lines, f"{name};TZID={tz}", format_local(dt, tz))
        else:
            self._write_prop(lines, name, format_utc(dt))

    def _write_recurrence_properties(self, lines: List[str], event: Event) -> None:
        if event.rrule.strip():
            self._write_prop(lines, "RRULE", event.rrule)

        if not event.exdates:
            return

        if event.all_day:
            values = [format_date(x) for x in event.exdates]
            self._write_prop(lines, "EXDATE;VALUE=DATE", ",".join(values))
            return

        tz = event.start_tz.strip()
        if tz:
            values = [format_local(x, tz) for x in event.exdates]
            self._write_prop(lines, f"EXDATE;TZID={tz}", ",".join(values))
            return

        values = [format_utc(x) for x in event.exdates]
        self._write_prop(lines, "EXDATE", ",".join(values))

    def _write_optional_properties(self, lines: List[str], event: Event) -> None:
        for attendee in event.attendees:
            attendee = attendee.strip()
            if not attendee:
                continue
            self._write_prop(lines, "ATTENDEE", f"mailto:{attendee}")

        if event.categories:
            self._write_prop(lines, "CATEGORIES", ",".join(event.categories))

        if event.priority > 0:
            self._write_prop(lines, "PRIORITY", str(event.priority))

        status = event.status.strip() or EventStatus.CONFIRMED.value
        self._write_prop(lines, "STATUS", status)

    def _write_alarm(self, lines: List[str], alarm: Reminder) -> None:
        self._write_line(lines, "BEGIN:VALARM")

        action = alarm.action.strip().upper() or AlarmAction.DISPLAY.value
        self._write_prop(lines, "ACTION", action)

        if alarm.trigger_is_relative:
            self._write_prop(lines, "TRIGGER", format_duration(alarm.trigger_duration))
        else:
            trigger_time = cast(datetime, alarm.trigger_time)
            self._write_prop(lines, "TRIGGER;VALUE=DATE-TIME", format_utc(trigger_time))

        if action == AlarmAction.DISPLAY.value:
            description = alarm.description.strip() or DEFAULT_ALARM_DESCRIPTION
            self._write_prop(lines, "DESCRIPTION", escape_text(description))

        if alarm.summary.strip():
            self._write_prop(lines, "SUMMARY", escape_text(alarm.summary))

        repeat = alarm.repeat or 0
        interval = alarm.repeat_duration or timedelta(0)
        if repeat > 0 and interval > timedelta(0):
            self._write_prop(lines, "REPEAT", str(repeat))
            self._write_prop(lines, "DURATION", format_duration(interval))

        self._write_line(lines, "END:VALARM")

    def _write_timestamps(self, lines: List[str], event: Event) -> None:
        if event.sequence > 0:
            self._write_prop(lines, "SEQUENCE", str(event.sequence))
        now = datetime.now(timezone.utc)
        self._write_prop(lines, "CREATED", format_utc(event.created or now))
        self._write_prop(lines, "LAST-MODIFIED", format_utc(event.last_modified or now))

    def _write_prop(self, lines: List[str], name: str, value: str) -> None:
        self._write_line(lines, f"{name}:{value}")

    def _write_line(self, lines: List[str], line: str) -> None:
        segments = fold_line(line, self.fold_limit)
        lines.append(segments[0] + CRLF)
        lines.extend(f" {segment}{CRLF}" for segment in segments[1:])


def serialize_calendar(calendar: Calendar, fold_limit: Optional[int] = None) -> str:
    """Render a calendar; fold_limit overrides the calendar's own limit."""
    serializer = ICSSerializer(calendar.fold_limit if fold_limit is None else fold_limit)
    return serializer.serialize(calendar)
