"""Parsers for human-entered durations, timestamps and alarm specs."""

from .alarms import AlarmParam, parse_alarm_specs, parse_alarms, split_alarm_input
from .datetimes import parse_absolute_time, parse_local_datetime
from .durations import parse_duration, parse_human_duration, parse_positive_duration

__all__ = [
    "AlarmParam",
    "parse_absolute_time",
    "parse_alarm_specs",
    "parse_alarms",
    "parse_duration",
    "parse_human_duration",
    "parse_local_datetime",
    "parse_positive_duration",
    "split_alarm_input",
]
