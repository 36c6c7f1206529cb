"""Absolute timestamp parsing for alarm triggers and event fields.

Extracted from the alarm parser so that event builders can reuse the same
layouts when interpreting user-entered instants.
"""

import logging
import re
from datetime import datetime
from typing import Any, Optional

from ..ics.exceptions import DateTimeFormatError
from ..timezone import get_timezone_service

logger = logging.getLogger(__name__)

# RFC 3339 with "T" or a single space separator and an explicit zone
_RFC3339_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2}(?:\.\d+)?)([Zz]|[+-]\d{2}:\d{2})$"
)

# Layouts without zone information, tried in order
COMMON_LAYOUTS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
)

DATE_LAYOUT = "%Y-%m-%d"
DATE_TIME_LAYOUT = "%Y-%m-%d %H:%M"


def parse_rfc3339(value: str) -> Optional[datetime]:
    """Parse an RFC 3339 timestamp with explicit zone.

    The space-separated variant is only accepted with a trailing ``Z``.

    Args:
        value: Timestamp string, e.g. ``2025-06-23T08:30:00Z``

    Returns:
        Aware datetime, or None if the string is not RFC 3339.
    """
    match = _RFC3339_RE.match(value.strip())
    if not match:
        return None

    date_part, time_part, zone = match.groups()
    separator = value.strip()[10]
    if separator == " " and zone.upper() != "Z":
        return None

    if zone.upper() == "Z":
        zone = "+00:00"
    # fromisoformat only handles up to six fractional digits before 3.11
    if "." in time_part:
        whole, fraction = time_part.split(".", 1)
        time_part = f"{whole}.{fraction[:6].ljust(6, '0')}"

    try:
        return datetime.fromisoformat(f"{date_part}T{time_part}{zone}")
    except ValueError:
        return None


def parse_absolute_time(text: str, timezone: Optional[str] = None) -> datetime:
    """Parse an absolute timestamp into an aware datetime.

    Tries RFC 3339 first, then ``COMMON_LAYOUTS``. Layouts without zone
    information are interpreted in ``timezone`` when it resolves; otherwise
    the process-local zone is used.

    Args:
        text: Timestamp string
        timezone: Optional timezone identifier for zone-less layouts

    Returns:
        Timezone-aware datetime

    Raises:
        DateTimeFormatError: If no layout matches.
    """
    value = (text or "").strip()
    if not value:
        raise DateTimeFormatError("empty absolute trigger", text)

    parsed = parse_rfc3339(value)
    if parsed is not None:
        return parsed

    service = get_timezone_service()
    tz: Optional[Any] = None
    if timezone and timezone.strip():
        tz = service.resolve(timezone)
        if tz is None:
            logger.warning(
                f"Unknown timezone {timezone!r} while parsing {value!r}, using local time"
            )

    for layout in COMMON_LAYOUTS:
        try:
            naive = datetime.strptime(value, layout)
        except ValueError:
            continue
        return service.localize(naive, tz)

    raise DateTimeFormatError(f"unrecognized absolute date/time {text!r}", text)


def parse_local_datetime(date_str: str, time_str: str = "", timezone: str = "") -> datetime:
    """Parse a ``YYYY-MM-DD`` date with an optional ``HH:MM`` time in a zone.

    Unlike ``parse_absolute_time`` an unknown timezone is an error here,
    because the caller named the zone explicitly.

    Args:
        date_str: Date string
        time_str: Optional clock time
        timezone: Optional timezone identifier; blank means process-local

    Returns:
        Timezone-aware datetime

    Raises:
        DateTimeFormatError: If the date/time or timezone is invalid.
    """
    date_str = (date_str or "").strip()
    time_str = (time_str or "").strip()
    if time_str:
        layout, value = DATE_TIME_LAYOUT, f"{date_str} {time_str}"
    else:
        layout, value = DATE_LAYOUT, date_str

    service = get_timezone_service()
    tz: Optional[Any] = None
    if timezone and timezone.strip():
        tz = service.resolve(timezone)
        if tz is None:
            raise DateTimeFormatError(f"invalid timezone {timezone}", timezone)

    try:
        naive = datetime.strptime(value, layout)
    except ValueError as e:
        raise DateTimeFormatError(f"invalid datetime format: {value}", value) from e
    return service.localize(naive, tz)
