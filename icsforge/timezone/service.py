"""Core timezone service for ICSForge.

Resolves timezone identifiers with a zoneinfo + pytz fallback strategy.
Identifiers are otherwise treated as opaque strings by the encoder.
"""

import importlib.util
import logging
from datetime import datetime, timezone as dt_timezone, tzinfo
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Check for timezone library availability
ZONEINFO_AVAILABLE = importlib.util.find_spec("zoneinfo") is not None
PYTZ_AVAILABLE = importlib.util.find_spec("pytz") is not None

# Import timezone libraries at top level if available
ZoneInfo = None
if ZONEINFO_AVAILABLE:
    from zoneinfo import ZoneInfo

pytz = None
if PYTZ_AVAILABLE:
    import pytz

# Friendly aliases accepted by collaborators that take city names
COMMON_TIMEZONES = {
    "madrid": "Europe/Madrid",
    "dublin": "Europe/Dublin",
    "london": "Europe/London",
    "canarias": "Atlantic/Canary",
    "paris": "Europe/Paris",
    "berlin": "Europe/Berlin",
    "rome": "Europe/Rome",
    "lisbon": "Europe/Lisbon",
    "new_york": "America/New_York",
    "los_angeles": "America/Los_Angeles",
    "tokyo": "Asia/Tokyo",
    "sydney": "Australia/Sydney",
    "utc": "UTC",
}


class TimezoneError(Exception):
    """Raised when timezone operations fail."""


class TimezoneService:
    """Centralized timezone lookups for ICSForge.

    All resolution of timezone identifiers goes through this service so the
    zoneinfo/pytz choice is made in exactly one place.
    """

    def __init__(self) -> None:
        """Initialize timezone service."""
        self._cache: dict[str, Any] = {}
        self._validate_timezone_support()

    def _validate_timezone_support(self) -> None:
        """Validate that timezone libraries are available.

        Raises:
            TimezoneError: If no timezone library is available.
        """
        if not ZONEINFO_AVAILABLE and not PYTZ_AVAILABLE:
            raise TimezoneError(
                "No timezone library available. Install Python 3.9+ for zoneinfo "
                "or install pytz package."
            )

        if ZONEINFO_AVAILABLE:
            logger.debug("Using zoneinfo for timezone handling")
        else:
            logger.debug("Using pytz fallback for timezone handling")

    def resolve(self, name: Optional[str]) -> Optional[Any]:
        """Resolve a timezone identifier to a tzinfo object.

        Friendly aliases from ``COMMON_TIMEZONES`` are accepted as well as IANA
        identifiers.

        Args:
            name: Timezone identifier, e.g. ``Europe/Madrid``.

        Returns:
            tzinfo object, or None if the identifier is blank or unknown.
        """
        key = (name or "").strip()
        if not key:
            return None
        if key in self._cache:
            return self._cache[key]

        iana = COMMON_TIMEZONES.get(key.lower(), key)
        tz: Optional[Any] = None

        if ZONEINFO_AVAILABLE and ZoneInfo is not None:
            try:
                tz = ZoneInfo(iana)
            except (ValueError, OSError, KeyError) as e:
                logger.debug(f"zoneinfo could not resolve {iana!r}: {e}")

        if tz is None and PYTZ_AVAILABLE and pytz is not None:
            try:
                tz = pytz.timezone(iana)
            except pytz.UnknownTimeZoneError:
                logger.debug(f"pytz could not resolve {iana!r}")

        if tz is not None:
            self._cache[key] = tz
        return tz

    def validate_timezone(self, name: str) -> str:
        """Validate a timezone identifier.

        Args:
            name: Timezone identifier to validate.

        Returns:
            The canonical IANA identifier.

        Raises:
            TimezoneError: If the identifier cannot be resolved.
        """
        key = (name or "").strip()
        if self.resolve(key) is None:
            raise TimezoneError(f"Invalid timezone: {name!r}")
        return COMMON_TIMEZONES.get(key.lower(), key)

    def get_local_timezone(self) -> tzinfo:
        """Get the process-local timezone.

        Returns:
            tzinfo of the host clock.
        """
        local_tz = datetime.now().astimezone().tzinfo
        return local_tz if local_tz is not None else dt_timezone.utc

    def localize(self, dt: datetime, tz: Optional[Any] = None) -> datetime:
        """Attach a timezone to a naive wall-clock datetime.

        Args:
            dt: Naive datetime to interpret.
            tz: Timezone to apply. Defaults to the process-local zone.

        Returns:
            Timezone-aware datetime.

        Raises:
            TypeError: If dt is not a datetime object.
        """
        if not isinstance(dt, datetime):
            raise TypeError(f"Expected datetime object, got {type(dt)}")

        if dt.tzinfo is not None:
            return dt

        if tz is None:
            # astimezone() on a naive value interprets it as local wall time
            return dt.astimezone()
        if hasattr(tz, "localize"):
            return tz.localize(dt)
        return dt.replace(tzinfo=tz)

    def to_zone(self, dt: datetime, name: str) -> datetime:
        """Convert an aware datetime into the named zone.

        Naive datetimes and unresolvable names are returned unchanged.
        """
        tz = self.resolve(name)
        if tz is None or dt.tzinfo is None:
            return dt
        return dt.astimezone(tz)

    def common_timezones(self) -> dict[str, str]:
        """Return the friendly alias to IANA identifier map."""
        return dict(COMMON_TIMEZONES)


# Global service instance (using module-level variable instead of global statement)
_timezone_service: Optional[TimezoneService] = None


def get_timezone_service() -> TimezoneService:
    """Get global timezone service instance.

    Returns:
        Singleton TimezoneService instance.
    """
    if globals()["_timezone_service"] is None:
        globals()["_timezone_service"] = TimezoneService()
    return globals()["_timezone_service"]


# Convenience functions for direct use
def resolve_timezone(name: Optional[str]) -> Optional[Any]:
    """Resolve a timezone identifier, returning None when unknown."""
    return get_timezone_service().resolve(name)


def validate_timezone(name: str) -> str:
    """Validate a timezone identifier and return its IANA name."""
    return get_timezone_service().validate_timezone(name)


def get_local_timezone() -> tzinfo:
    """Get the process-local timezone."""
    return get_timezone_service().get_local_timezone()


def localize(dt: datetime, tz: Optional[Any] = None) -> datetime:
    """Attach a timezone to a naive datetime."""
    return get_timezone_service().localize(dt, tz)


def ensure_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt.astimezone(dt_timezone.utc)


def common_timezones() -> dict[str, str]:
    """Return the friendly alias to IANA identifier map."""
    return get_timezone_service().common_timezones()
