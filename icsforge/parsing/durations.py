"""Human-friendly duration parsing.

Two grammars live here:

* ``parse_duration`` is the strict grammar used for event durations:
  bare minutes, compact ``HhMm``, word variants of minutes and the ISO-8601
  ``P``/``PT`` subset.
* ``parse_human_duration`` widens it for alarm offsets with day and week
  suffixes, ``H:MM`` clock notation and unit sequences that include seconds.

Both return ``datetime.timedelta`` and raise ``DurationFormatError``.
"""

import logging
import re
from datetime import timedelta

from ..ics.exceptions import DurationFormatError, ICSValidationError

logger = logging.getLogger(__name__)

EMPTY_DURATION_MESSAGE = "duration cannot be empty"

_BARE_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_ISO_DURATION_RE = re.compile(
    r"^P(?:(\d+)W)?(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$",
    re.IGNORECASE,
)
_CLOCK_RE = re.compile(r"^\s*(\d{1,2})\s*:\s*([0-5]?\d)\s*$")
_UNIT_SEQUENCE_RE = re.compile(r"^(?:\d+(?:\.\d+)?(?:ms|w|d|h|m|s))+$")
_UNIT_TOKEN_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|w|d|h|m|s)")

# Longest words first so "minutes" is not left as "utes" after "min"
_MINUTE_WORDS = ("minutes", "minute", "mins", "min")

_UNIT_SECONDS = {
    "w": 7 * 86400,
    "d": 86400,
    "h": 3600,
    "m": 60,
    "s": 1,
    "ms": 0.001,
}


def parse_duration(text: str) -> timedelta:
    """Parse a human-entered duration.

    Accepted forms (case-insensitive, surrounding whitespace ignored):

    * ``"90"`` - bare integer, minutes (``"0"`` is accepted)
    * ``"45m"``, ``"2h"``, ``"1h30m"``, ``"1h30"`` - compact hours/minutes
    * ``"30 minutes"``, ``"45min"`` - word variants of the minute suffix
    * ``"PT45M"``, ``"PT1H30M"``, ``"P1DT2H"`` - ISO-8601 subset

    Args:
        text: Duration string

    Returns:
        Parsed duration. May be zero for a bare ``"0"``; callers that need a
        strictly positive value use ``parse_positive_duration``.

    Raises:
        DurationFormatError: If the string is empty or not recognized, or a
            compact/ISO form totals zero.
    """
    s = (text or "").strip().lower()
    if not s:
        raise DurationFormatError(EMPTY_DURATION_MESSAGE, text)

    # Plain number => minutes
    if _BARE_INTEGER_RE.match(s):
        return timedelta(minutes=int(s))

    for word in _MINUTE_WORDS:
        s = s.replace(word, "m")
    s = s.replace(" ", "")

    if s.startswith("p"):
        return _parse_iso_duration(s, text)

    return _parse_compact(s, text)


def parse_positive_duration(text: str) -> timedelta:
    """Parse a duration that must be strictly positive.

    Raises:
        DurationFormatError: If the string is not a duration.
        ICSValidationError: If the duration is zero or negative.
    """
    duration = parse_duration(text)
    if duration <= timedelta(0):
        raise ICSValidationError("duration must be > 0", text)
    return duration


def parse_human_duration(text: str) -> timedelta:
    """Parse the wider duration grammar used for alarm offsets.

    Tries, in order: ``parse_duration``; ``"1:30"`` clock notation; unit
    sequences such as ``"1d"``, ``"2w"``, ``"1h30m15s"`` or ``"90s"``.

    Args:
        text: Duration string, normally unsigned

    Returns:
        Parsed duration, possibly zero. A signed bare integer keeps its sign
        (``"-5"`` is minus five minutes); ``parse_duration_value`` in the
        alarm parser rejects such values for offsets.

    Raises:
        DurationFormatError: If no form matches.
    """
    s = (text or "").strip().lower()
    if not s:
        raise DurationFormatError(EMPTY_DURATION_MESSAGE, text)

    try:
        return parse_duration(s)
    except DurationFormatError:
        pass

    clock = _CLOCK_RE.match(s)
    if clock:
        return timedelta(hours=int(clock.group(1)), minutes=int(clock.group(2)))

    compact = s.replace(" ", "")
    if _UNIT_SEQUENCE_RE.match(compact):
        seconds = sum(
            float(amount) * _UNIT_SECONDS[unit]
            for amount, unit in _UNIT_TOKEN_RE.findall(compact)
        )
        return timedelta(seconds=seconds)

    raise DurationFormatError(f"unrecognized duration format: {text!r}", text)


def _parse_iso_duration(s: str, raw: str) -> timedelta:
    """Parse the ``P[nW][nD][T[nH][nM][nS]]`` subset."""
    match = _ISO_DURATION_RE.match(s)
    if not match:
        raise DurationFormatError(f"invalid ISO-8601 duration: {raw!r}", raw)

    weeks, days, hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    total = timedelta(
        weeks=weeks, days=days, hours=hours, minutes=minutes, seconds=seconds
    )
    if total == timedelta(0):
        raise DurationFormatError(f"invalid ISO-8601 duration: {raw!r}", raw)
    return total


def _parse_compact(s: str, raw: str) -> timedelta:
    """Parse the compact ``HhMm`` form."""
    if not s:
        raise DurationFormatError(f"invalid duration: {raw!r}", raw)

    hours = 0
    minutes = 0

    if "h" in s:
        hours_part, s = s.split("h", 1)
        if hours_part:
            if not hours_part.isdecimal():
                raise DurationFormatError(f"invalid hours in duration: {raw!r}", raw)
            hours = int(hours_part)

    if s.endswith("m"):
        minutes_part = s[:-1]
        if minutes_part:
            if not minutes_part.isdecimal():
                raise DurationFormatError(f"invalid minutes in duration: {raw!r}", raw)
            minutes = int(minutes_part)
    elif s:
        # Trailing digits without a unit are minutes ("1h30")
        if not s.isdecimal():
            raise DurationFormatError(f"invalid duration tail: {raw!r}", raw)
        minutes = int(s)

    total = timedelta(hours=hours, minutes=minutes)
    if total <= timedelta(0):
        raise DurationFormatError(f"duration must be > 0: {raw!r}", raw)
    logger.debug(f"Parsed compact duration {raw!r} -> {total}")
    return total
