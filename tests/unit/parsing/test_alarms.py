"""Unit tests for alarm specification parsing."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from icsforge.ics.exceptions import AlarmSpecError, AlarmValidationError, ICSValidationError
from icsforge.ics.exceptions import DurationFormatError
from icsforge.parsing.alarms import (
    AFTER,
    BEFORE,
    PARAM_ALIASES,
    AlarmParam,
    determine_trigger_mode,
    parse_alarm_params,
    parse_alarm_spec,
    parse_alarm_specs,
    parse_alarms,
    parse_boolish,
    parse_duration_value,
    parse_relative_offset,
    split_alarm_input,
)


class TestSplitAlarmInput:
    """Test tokenizing raw alarm input."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("15m,trigger=30m", ["15m,trigger=30m"]),
            ("15m||30m", ["15m", "30m"]),
            ("15m, 30m;1h|2h", ["15m", "30m", "1h", "2h"]),
            ("15m\r\n30m\r1h", ["15m", "30m", "1h"]),
            ("trigger=15m,action=email||30m", ["trigger=15m,action=email", "30m"]),
            ("trigger=15m;summary=x\n-1h", ["trigger=15m;summary=x", "-1h"]),
            (" 15m ,, ; ", ["15m"]),
            ("", []),
            ("   \n  ", []),
        ],
    )
    def test_split(self, raw: str, expected: list) -> None:
        """Test separators and key-value preservation."""
        assert split_alarm_input(raw) == expected


class TestSimpleSpecs:
    """Test bare trigger specs."""

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("15m", timedelta(minutes=-15)),
            ("-1h", timedelta(hours=-1)),
            ("+30m", timedelta(minutes=30)),
            ("1d", timedelta(days=-1)),
            ("1:30", timedelta(minutes=-90)),
            ("PT10M", timedelta(minutes=-10)),
            ("0m", timedelta(0)),
        ],
    )
    def test_relative(self, spec: str, expected: timedelta) -> None:
        """Test relative offsets default to before the event."""
        reminder = parse_alarm_spec(spec)

        assert reminder.trigger_is_relative is True
        assert reminder.trigger_duration == expected
        assert reminder.action == "DISPLAY"
        assert reminder.description == "Reminder"

    def test_absolute_rfc3339(self) -> None:
        """Test absolute timestamps."""
        reminder = parse_alarm_spec("2025-03-10T08:00:00Z")

        assert reminder.trigger_is_relative is False
        assert reminder.trigger_time == datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)

    def test_absolute_in_default_timezone(self) -> None:
        """Test zone-less timestamps use the default timezone and are stored in UTC."""
        reminder = parse_alarm_spec("2025-03-10 09:00", "Europe/Madrid")
        assert reminder.trigger_time == datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)

    def test_invalid(self) -> None:
        """Test that neither relative nor absolute yields an error."""
        with pytest.raises(AlarmSpecError, match="invalid alarm"):
            parse_alarm_spec("whenever")


class TestKeyValueSpecs:
    """Test key=value specs."""

    def test_trigger_defaults(self) -> None:
        """Test a minimal key-value spec."""
        reminder = parse_alarm_spec("trigger=15m")

        assert reminder.trigger_duration == timedelta(minutes=-15)
        assert reminder.action == "DISPLAY"
        assert reminder.description == "Reminder"

    @pytest.mark.parametrize(
        ("spec", "expected"),
        [
            ("trigger=15m,direction=after", timedelta(minutes=15)),
            ("trigger=15m,when=following", timedelta(minutes=15)),
            ("trigger=15m,direction=prior", timedelta(minutes=-15)),
            ("trigger=15m,direction=sideways", timedelta(minutes=-15)),
            ("trigger=-15m,direction=after", timedelta(minutes=-15)),
            ("trigger=+15m,direction=before", timedelta(minutes=15)),
            ("trigger=10m,kind=after", timedelta(minutes=10)),
            ("trigger=10m,kind=before,direction=after", timedelta(minutes=-10)),
            ("offset=1h;when=plus", timedelta(hours=1)),
        ],
    )
    def test_direction(self, spec: str, expected: timedelta) -> None:
        """Test direction hints, kind overrides and explicit signs."""
        reminder = parse_alarm_spec(spec)

        assert reminder.trigger_is_relative is True
        assert reminder.trigger_duration == expected

    def test_action_and_text_synonyms(self) -> None:
        """Test action upper-casing and text synonyms."""
        reminder = parse_alarm_spec("trigger=1h,action=email,title=Heads up,message=Call Ana")

        assert reminder.action == "EMAIL"
        assert reminder.summary == "Heads up"
        assert reminder.description == "Call Ana"

    def test_non_display_keeps_blank_description(self) -> None:
        """Test that only DISPLAY alarms get the default description."""
        assert parse_alarm_spec("trigger=1h,action=audio").description == ""

    def test_first_non_empty_synonym_wins(self) -> None:
        """Test alias precedence."""
        reminder = parse_alarm_spec("offset=30m,trigger=15m,description=,text=Later,message=Sooner")

        assert reminder.trigger_duration == timedelta(minutes=-15)
        assert reminder.description == "Sooner"

    def test_keys_case_insensitive(self) -> None:
        """Test key normalization."""
        reminder = parse_alarm_spec("TRIGGER=5m,Action=Display,DESCRIPTION=Go")

        assert reminder.trigger_duration == timedelta(minutes=-5)
        assert reminder.description == "Go"

    def test_absolute_trigger(self) -> None:
        """Test absolute triggers without hints."""
        reminder = parse_alarm_spec("trigger=2025-03-10T08:00:00Z,action=email")

        assert reminder.trigger_is_relative is False
        assert reminder.trigger_time == datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("hint", ["kind=absolute", "kind=at", "kind=on", "relative=no"])
    def test_forced_absolute(self, hint: str) -> None:
        """Test that absolute forcing skips the relative parse."""
        reminder = parse_alarm_spec(f"trigger=2025-03-10 09:00,{hint}", "Europe/Madrid")

        assert reminder.trigger_is_relative is False
        assert reminder.trigger_time == datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)

    def test_forced_absolute_rejects_duration(self) -> None:
        """Test that a duration cannot satisfy an absolute trigger."""
        with pytest.raises(AlarmSpecError):
            parse_alarm_spec("trigger=15m,kind=absolute")

    def test_forced_relative_rejects_timestamp(self) -> None:
        """Test that a timestamp cannot satisfy a relative trigger."""
        with pytest.raises(AlarmSpecError, match="invalid relative trigger"):
            parse_alarm_spec("trigger=2025-03-10T08:00:00Z,kind=relative")

    def test_boolish_relative_wins_over_kind(self) -> None:
        """Test that relative= overrides kind=."""
        reminder = parse_alarm_spec("trigger=15m,kind=absolute,relative=yes")

        assert reminder.trigger_is_relative is True
        assert reminder.trigger_duration == timedelta(minutes=-15)

    def test_unknown_keys_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that unrecognized parameters are skipped and logged."""
        with caplog.at_level(logging.DEBUG, logger="icsforge.parsing.alarms"):
            reminder = parse_alarm_spec("trigger=15m,colour=red")

        assert reminder.trigger_duration == timedelta(minutes=-15)
        assert "colour" in caplog.text

    def test_missing_trigger(self) -> None:
        """Test that trigger= is required."""
        with pytest.raises(AlarmSpecError, match="missing trigger"):
            parse_alarm_spec("action=email,summary=x")

    def test_segment_without_equals(self) -> None:
        """Test malformed segments."""
        with pytest.raises(AlarmSpecError, match="invalid alarm segment"):
            parse_alarm_spec("trigger=15m,loud")


class TestZeroAndRepeat:
    """Test validation of zero triggers and repeats."""

    @pytest.mark.parametrize(
        "spec",
        [
            "trigger=0m",
            "trigger=0",
            "trigger=+0m,kind=after",
            "trigger=500ms",
            "trigger=999ms,kind=after",
        ],
    )
    def test_zero_relative_rejected(self, spec: str) -> None:
        """Test that key-value triggers must be at least one whole second away."""
        with pytest.raises(AlarmValidationError, match="zero relative duration"):
            parse_alarm_spec(spec)

    def test_repeat_without_duration_rejected(self) -> None:
        """Test that a repeat count needs an interval."""
        with pytest.raises(AlarmValidationError) as exc_info:
            parse_alarm_spec("trigger=15m,repeat=3")

        assert isinstance(exc_info.value, AlarmSpecError)
        assert isinstance(exc_info.value, ICSValidationError)

    def test_duration_without_repeat_rejected(self) -> None:
        """Test that an interval needs a repeat count."""
        with pytest.raises(AlarmValidationError):
            parse_alarm_spec("trigger=15m,repeat_duration=5m")

    @pytest.mark.parametrize(
        "spec",
        [
            "trigger=15m,repeat=3,repeat_duration=5m",
            "trigger=15m,repetitions=3,repeat_interval=PT5M",
            "trigger=15m,repeat=3,repeat_duration=+5m",
        ],
    )
    def test_repeat_accepted(self, spec: str) -> None:
        """Test complete repeat specifications."""
        reminder = parse_alarm_spec(spec)

        assert reminder.repeat == 3
        assert reminder.repeat_duration == timedelta(minutes=5)

    @pytest.mark.parametrize("count", ["0", "-2", "abc", "1.5", "1_0", "\uff13", "\u0663"])
    def test_invalid_repeat_count(self, count: str) -> None:
        """Test that repeat counts must be positive integers."""
        with pytest.raises(AlarmSpecError, match="invalid repeat count"):
            parse_alarm_spec(f"trigger=15m,repeat={count},repeat_duration=5m")

    @pytest.mark.parametrize("interval", ["-5m", "soon"])
    def test_invalid_repeat_duration(self, interval: str) -> None:
        """Test that repeat intervals must be positive durations."""
        with pytest.raises(AlarmSpecError, match="invalid repeat duration"):
            parse_alarm_spec(f"trigger=15m,repeat=2,repeat_duration={interval}")

    def test_zero_repeat_duration(self) -> None:
        """Test that a zero interval is rejected."""
        with pytest.raises(AlarmValidationError, match="must be positive"):
            parse_alarm_spec("trigger=15m,repeat=2,repeat_duration=0")

    def test_sub_second_repeat_duration(self) -> None:
        """Test that an interval written as PT0S is rejected."""
        with pytest.raises(AlarmValidationError, match="must be positive"):
            parse_alarm_spec("trigger=15m,repeat=2,repeat_duration=500ms")

    def test_signed_repeat_count(self) -> None:
        """Test that an explicit plus sign is allowed on the count."""
        assert parse_alarm_spec("trigger=15m,repeat=+2,repeat_duration=5m").repeat == 2

    def test_sub_minute_trigger_kept(self) -> None:
        """Test that offsets of at least one second are accepted."""
        reminder = parse_alarm_spec("trigger=1500ms")
        assert reminder.trigger_duration == timedelta(milliseconds=-1500)


class TestParseAlarms:
    """Test list-level parsing."""

    def test_mixed_input(self) -> None:
        """Test simple and key-value specs together."""
        reminders = parse_alarms("15m||trigger=1h,action=audio\n2025-03-10T08:00:00Z")

        assert [r.action for r in reminders] == ["DISPLAY", "AUDIO", "DISPLAY"]
        assert [r.trigger_is_relative for r in reminders] == [True, True, False]

    def test_blank_input(self) -> None:
        """Test that blank input yields no reminders."""
        assert parse_alarms("  ") == []

    def test_blank_specs_skipped(self) -> None:
        """Test that empty list entries are ignored."""
        assert len(parse_alarm_specs(["", "15m", "  "])) == 1

    def test_any_failure_aborts(self) -> None:
        """Test that one bad spec fails the whole list."""
        with pytest.raises(AlarmSpecError):
            parse_alarm_specs(["15m", "trigger=15m,repeat=3"])


class TestHelpers:
    """Test parameter and duration helpers."""

    def test_alias_table_covers_every_param(self) -> None:
        """Test that each parameter has at least its own name as alias."""
        assert set(PARAM_ALIASES) == set(AlarmParam)
        for param, aliases in PARAM_ALIASES.items():
            assert param.value in aliases

    def test_parse_alarm_params(self) -> None:
        """Test parameter extraction."""
        params = parse_alarm_params("Offset = 10m ; KIND=after, foo=bar")
        assert params == {AlarmParam.TRIGGER: "10m", AlarmParam.KIND: "after"}

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("1", True), ("true", True), ("YES", True), (" y ", True), ("on", True),
         ("0", False), ("no", False), ("off", False), ("maybe", False)],
    )
    def test_parse_boolish(self, value: str, expected: bool) -> None:
        """Test yes/no interpretation."""
        assert parse_boolish(value) is expected

    def test_determine_trigger_mode(self) -> None:
        """Test mode resolution from hints."""
        mode = determine_trigger_mode({AlarmParam.KIND: "after"})
        assert (mode.force_relative, mode.force_absolute, mode.default_direction) == (
            True,
            False,
            AFTER,
        )

        mode = determine_trigger_mode({AlarmParam.KIND: "on", AlarmParam.DIRECTION: "after"})
        assert (mode.force_relative, mode.force_absolute, mode.default_direction) == (
            False,
            True,
            AFTER,
        )

        mode = determine_trigger_mode({})
        assert (mode.force_relative, mode.force_absolute, mode.default_direction) == (
            False,
            False,
            BEFORE,
        )

    def test_parse_relative_offset(self) -> None:
        """Test sign handling."""
        assert parse_relative_offset("15m", AFTER) == timedelta(minutes=15)
        assert parse_relative_offset("- 15m", AFTER) == timedelta(minutes=-15)
        assert parse_relative_offset("15m", 0) == timedelta(minutes=-15)

    def test_parse_duration_value(self) -> None:
        """Test unsigned duration parsing."""
        assert parse_duration_value("+5m") == timedelta(minutes=5)
        with pytest.raises(DurationFormatError, match="must be positive"):
            parse_duration_value("-5m")
        with pytest.raises(DurationFormatError):
            parse_duration_value("")
