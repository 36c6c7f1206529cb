"""Alarm specification parsing.

Turns user-entered reminder strings into ``Reminder`` models. Two spec
shapes are understood:

* simple: ``"15m"``, ``"-1h"``, ``"+30m"``, ``"2025-03-10 08:00"``
* key-value: ``"trigger=15m,action=email,summary=Heads up"``

Several specs can be given in one string separated by newlines, ``||``, or
(for simple specs only) ``,``, ``;`` and ``|``.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ..ics.exceptions import (
    AlarmSpecError,
    AlarmValidationError,
    DateTimeFormatError,
    DurationFormatError,
    ICSParseError,
)
from ..ics.models import DEFAULT_ALARM_DESCRIPTION, AlarmAction, Reminder
from .datetimes import parse_absolute_time
from .durations import EMPTY_DURATION_MESSAGE, parse_human_duration

logger = logging.getLogger(__name__)

BEFORE = -1
AFTER = 1

_SIMPLE_SEPARATORS_RE = re.compile(r"[,;|]")
_PARAM_SEPARATORS_RE = re.compile(r"[,;]")
_REPEAT_COUNT_RE = re.compile(r"^[+-]?[0-9]+$")


class AlarmParam(str, Enum):
    """Recognized key-value alarm parameters."""

    TRIGGER = "trigger"
    ACTION = "action"
    DESCRIPTION = "description"
    SUMMARY = "summary"
    DIRECTION = "direction"
    KIND = "kind"
    RELATIVE = "relative"
    REPEAT = "repeat"
    REPEAT_DURATION = "repeat_duration"


# Accepted keys per parameter, in precedence order
PARAM_ALIASES: Dict[AlarmParam, Tuple[str, ...]] = {
    AlarmParam.TRIGGER: ("trigger", "offset"),
    AlarmParam.ACTION: ("action",),
    AlarmParam.DESCRIPTION: ("description", "message", "text"),
    AlarmParam.SUMMARY: ("summary", "title"),
    AlarmParam.DIRECTION: ("direction", "when"),
    AlarmParam.KIND: ("kind",),
    AlarmParam.RELATIVE: ("relative", "is_relative"),
    AlarmParam.REPEAT: ("repeat", "repetitions"),
    AlarmParam.REPEAT_DURATION: ("repeat_duration", "repeat_interval"),
}

_KNOWN_KEYS = frozenset(key for aliases in PARAM_ALIASES.values() for key in aliases)

DIRECTION_AFTER = frozenset({"after", "post", "later", "follow", "following", "plus"})
DIRECTION_BEFORE = frozenset({"before", "prior", "pre", "minus"})

KIND_ABSOLUTE = frozenset({"absolute", "at", "on"})

TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


@dataclass
class TriggerMode:
    """How a key-value trigger should be interpreted."""

    force_relative: bool = False
    force_absolute: bool = False
    default_direction: int = BEFORE


def split_alarm_input(raw: str) -> List[str]:
    """Tokenize a raw alarm string into individual specs.

    Lines are split first, then ``||``; a piece containing ``=`` is kept
    whole so its own ``,``/``;`` separators survive, otherwise it is split on
    ``,``, ``;`` and ``|``.

    Args:
        raw: User-entered alarm text

    Returns:
        List of trimmed, non-empty spec strings
    """
    s = (raw or "").strip()
    if not s:
        return []

    normalized = s.replace("\r\n", "\n").replace("\r", "\n")
    out: List[str] = []
    for line in normalized.split("\n"):
        line = line.strip()
        if line:
            _split_alarm_line(line, out)
    return out


def _split_alarm_line(line: str, out: List[str]) -> None:
    if "||" in line:
        for part in line.split("||"):
            out.extend(split_alarm_input(part))
        return

    if "=" in line:
        out.append(line)
        return

    for part in _SIMPLE_SEPARATORS_RE.split(line):
        part = part.strip()
        if part:
            out.append(part)


def parse_alarms(raw: str, default_tz: str = "") -> List[Reminder]:
    """Split and parse a raw alarm string.

    Args:
        raw: User-entered alarm text
        default_tz: Timezone for zone-less absolute triggers

    Returns:
        Parsed reminders (empty when raw is blank)
    """
    specs = split_alarm_input(raw)
    if not specs:
        return []
    return parse_alarm_specs(specs, default_tz)


def parse_alarm_specs(specs: Iterable[str], default_tz: str = "") -> List[Reminder]:
    """Parse alarm specs into reminders.

    Args:
        specs: Spec strings as produced by ``split_alarm_input``
        default_tz: Timezone for zone-less absolute triggers

    Returns:
        One reminder per non-blank spec, in order

    Raises:
        AlarmSpecError: If any spec is malformed or invalid; nothing is
            returned in that case.
    """
    reminders: List[Reminder] = []
    for raw in specs:
        raw = raw.strip()
        if not raw:
            continue
        reminders.append(parse_alarm_spec(raw, default_tz))
    logger.debug(f"Parsed {len(reminders)} alarm specs")
    return reminders


def parse_alarm_spec(spec: str, default_tz: str = "") -> Reminder:
    """Parse one alarm spec, simple or key-value."""
    if "=" in spec:
        return _parse_key_value_spec(spec, default_tz)
    return _parse_simple_spec(spec, default_tz)


def _parse_simple_spec(spec: str, default_tz: str) -> Reminder:
    trigger = spec.strip()
    if not trigger:
        raise AlarmSpecError("alarm trigger cannot be empty", spec)

    try:
        offset = parse_relative_offset(trigger, BEFORE)
    except DurationFormatError:
        pass
    else:
        return Reminder(
            action=AlarmAction.DISPLAY.value,
            description=DEFAULT_ALARM_DESCRIPTION,
            trigger_is_relative=True,
            trigger_duration=offset,
        )

    try:
        when = parse_absolute_time(trigger, default_tz)
    except DateTimeFormatError as e:
        raise AlarmSpecError(f"invalid alarm {spec!r}: {e.message}", spec) from e

    return Reminder(
        action=AlarmAction.DISPLAY.value,
        description=DEFAULT_ALARM_DESCRIPTION,
        trigger_is_relative=False,
        trigger_time=when,
    )


def _parse_key_value_spec(spec: str, default_tz: str) -> Reminder:
    params = parse_alarm_params(spec)

    trigger = params.get(AlarmParam.TRIGGER, "")
    if not trigger:
        raise AlarmSpecError(f"alarm {spec!r} is missing trigger= value", spec)

    action = params.get(AlarmParam.ACTION, "").upper() or AlarmAction.DISPLAY.value
    description = params.get(AlarmParam.DESCRIPTION, "")
    if not description and action == AlarmAction.DISPLAY.value:
        description = DEFAULT_ALARM_DESCRIPTION

    mode = determine_trigger_mode(params)
    repeat, repeat_duration = _parse_repeat(params, spec)

    is_relative, offset, when = _resolve_trigger(trigger, mode, default_tz, spec)
    # Sub-second offsets are written as PT0S
    if is_relative and whole_seconds(offset) == 0:
        raise AlarmValidationError(f"alarm {spec!r} has zero relative duration", spec)

    return Reminder(
        action=action,
        summary=params.get(AlarmParam.SUMMARY, ""),
        description=description,
        trigger_is_relative=is_relative,
        trigger_duration=offset,
        trigger_time=when,
        repeat=repeat,
        repeat_duration=repeat_duration,
    )


def parse_alarm_params(spec: str) -> Dict[AlarmParam, str]:
    """Split a key-value spec into recognized parameters.

    Keys are case-insensitive. When several synonyms of one parameter are
    given, the first alias in ``PARAM_ALIASES`` with a non-blank value wins.
    Unknown keys are ignored.

    Raises:
        AlarmSpecError: If a segment has no ``=``.
    """
    raw: Dict[str, str] = {}
    for part in _PARAM_SEPARATORS_RE.split(spec):
        if not part.strip():
            continue
        if "=" not in part:
            raise AlarmSpecError(f"invalid alarm segment {part!r}", spec)
        key, value = part.split("=", 1)
        key = key.strip().lower()
        if not key:
            continue
        if key not in _KNOWN_KEYS:
            logger.debug(f"Ignoring unknown alarm parameter {key!r} in {spec!r}")
        raw[key] = value.strip()

    params: Dict[AlarmParam, str] = {}
    for param, aliases in PARAM_ALIASES.items():
        for alias in aliases:
            value = raw.get(alias, "")
            if value:
                params[param] = value
                break
    return params


def determine_trigger_mode(params: Dict[AlarmParam, str]) -> TriggerMode:
    """Work out relative/absolute forcing and the default sign.

    An explicit ``relative=`` wins outright; otherwise ``kind=`` may force
    either mode; otherwise both are tried, relative first.
    """
    mode = TriggerMode()

    direction = params.get(AlarmParam.DIRECTION, "").lower()
    if direction in DIRECTION_AFTER:
        mode.default_direction = AFTER
    elif direction in DIRECTION_BEFORE:
        mode.default_direction = BEFORE

    kind = params.get(AlarmParam.KIND, "").lower()
    if kind == "relative":
        mode.force_relative = True
    elif kind == "before":
        mode.force_relative = True
        mode.default_direction = BEFORE
    elif kind == "after":
        mode.force_relative = True
        mode.default_direction = AFTER
    elif kind in KIND_ABSOLUTE:
        mode.force_absolute = True

    relative = params.get(AlarmParam.RELATIVE, "")
    if relative:
        mode.force_relative = parse_boolish(relative)
        mode.force_absolute = not mode.force_relative

    return mode


def _parse_repeat(
    params: Dict[AlarmParam, str], spec: str
) -> Tuple[Optional[int], Optional[timedelta]]:
    repeat: Optional[int] = None
    repeat_str = params.get(AlarmParam.REPEAT, "")
    if repeat_str:
        repeat = int(repeat_str) if _REPEAT_COUNT_RE.match(repeat_str) else 0
        if repeat <= 0:
            raise AlarmSpecError(f"invalid repeat count {repeat_str!r} in alarm {spec!r}", spec)

    repeat_duration: Optional[timedelta] = None
    duration_str = params.get(AlarmParam.REPEAT_DURATION, "")
    if duration_str:
        try:
            repeat_duration = parse_duration_value(duration_str)
        except DurationFormatError as e:
            raise AlarmSpecError(
                f"invalid repeat duration {duration_str!r} in alarm {spec!r}: {e.message}",
                spec,
            ) from e
        if whole_seconds(repeat_duration) <= 0:
            raise AlarmValidationError(f"repeat duration must be positive in alarm {spec!r}", spec)

    if (repeat is None) != (repeat_duration is None):
        raise AlarmValidationError(
            f"repeat count and repeat duration must both be positive in alarm {spec!r}", spec
        )
    return repeat, repeat_duration


def _resolve_trigger(
    trigger: str, mode: TriggerMode, default_tz: str, spec: str
) -> Tuple[bool, timedelta, Optional[datetime]]:
    """Return (is_relative, offset, absolute time) for a key-value trigger."""
    relative_error: Optional[ICSParseError] = None

    if not mode.force_absolute:
        try:
            return True, parse_relative_offset(trigger, mode.default_direction), None
        except DurationFormatError as e:
            relative_error = e

    if mode.force_relative:
        message = relative_error.message if relative_error else "not a duration"
        raise AlarmSpecError(
            f"invalid relative trigger {trigger!r} in alarm {spec!r}: {message}", spec
        )

    try:
        when = parse_absolute_time(trigger, default_tz)
    except DateTimeFormatError as e:
        if relative_error is not None:
            raise AlarmSpecError(
                f"invalid alarm {spec!r}: {e.message}; "
                f"also failed to parse relative offset ({relative_error.message})",
                spec,
            ) from e
        raise AlarmSpecError(f"invalid alarm {spec!r}: {e.message}", spec) from e
    return False, timedelta(0), when


def parse_relative_offset(raw: str, default_direction: int = BEFORE) -> timedelta:
    """Parse a signed offset; an explicit ``+``/``-`` beats the default.

    Raises:
        DurationFormatError: If the value is not a duration.
    """
    value = (raw or "").strip()
    if not value:
        raise DurationFormatError(EMPTY_DURATION_MESSAGE, raw)

    sign = 0
    if value.startswith("+"):
        sign = AFTER
        value = value[1:].strip()
    elif value.startswith("-"):
        sign = BEFORE
        value = value[1:].strip()

    duration = parse_duration_value(value)
    if sign == 0:
        sign = default_direction or BEFORE
    return -duration if sign < 0 else duration


def parse_duration_value(raw: str) -> timedelta:
    """Parse an unsigned duration for alarm offsets and repeat intervals.

    Raises:
        DurationFormatError: If the value is empty, negative or unrecognized.
    """
    value = (raw or "").strip()
    if not value:
        raise DurationFormatError(EMPTY_DURATION_MESSAGE, raw)
    if value.startswith("+"):
        value = value[1:].strip()
    if value.startswith("-"):
        raise DurationFormatError("duration must be positive", raw)

    duration = parse_human_duration(value)
    if duration < timedelta(0):
        raise DurationFormatError("duration must be positive", raw)
    return duration


def whole_seconds(duration: timedelta) -> int:
    """Seconds in duration, truncated toward zero as in DURATION output."""
    return int(duration.total_seconds())


def parse_boolish(value: str) -> bool:
    """Interpret yes/no style strings; anything unrecognized is false."""
    return value.strip().lower() in TRUTHY
