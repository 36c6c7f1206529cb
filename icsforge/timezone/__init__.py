"""
Timezone package for ICSForge.

Provides timezone resolution with a clean public API.
Uses zoneinfo + pytz fallback strategy for robust timezone operations.

Example usage:
    >>> from icsforge.timezone import resolve_timezone, localize
    >>> from datetime import datetime
    >>>
    >>> madrid = resolve_timezone("Europe/Madrid")
    >>> aware = localize(datetime(2025, 3, 10, 9, 0), madrid)
"""

from .service import (
    COMMON_TIMEZONES,
    TimezoneError,
    TimezoneService,
    common_timezones,
    ensure_utc,
    get_local_timezone,
    get_timezone_service,
    localize,
    resolve_timezone,
    validate_timezone,
)

__all__ = [
    "COMMON_TIMEZONES",
    "TimezoneError",
    "TimezoneService",
    "common_timezones",
    "ensure_utc",
    "get_local_timezone",
    "get_timezone_service",
    "localize",
    "resolve_timezone",
    "validate_timezone",
]
