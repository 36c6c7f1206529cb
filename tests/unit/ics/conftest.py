"""Shared fixtures for ICS module tests."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from icsforge.ics.models import Calendar, Event, Reminder
from icsforge.ics.serializer import ICSSerializer

MADRID = ZoneInfo("Europe/Madrid")

# ============================================================================
# Timestamp Fixtures
# ============================================================================


@pytest.fixture
def fixed_created() -> datetime:
    """Deterministic creation time for DTSTAMP/CREATED/LAST-MODIFIED."""
    return datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def madrid_start() -> datetime:
    """2025-03-10 09:30 in Madrid (08:30 UTC, winter time)."""
    return datetime(2025, 3, 10, 9, 30, tzinfo=MADRID)


# ============================================================================
# Event Fixtures
# ============================================================================


@pytest.fixture
def timed_event(madrid_start: datetime, fixed_created: datetime) -> Event:
    """One-hour Madrid meeting with fixed timestamps."""
    event = Event(
        uid="test-uid-1@icsforge",
        summary="Team Sync",
        start=madrid_start,
        end=madrid_start + timedelta(hours=1),
        created=fixed_created,
        last_modified=fixed_created,
    )
    event.set_timezone("Europe/Madrid")
    return event


@pytest.fixture
def utc_event(fixed_created: datetime) -> Event:
    """Event without TZID, emitted in UTC."""
    return Event(
        uid="test-uid-2@icsforge",
        summary="UTC Call",
        start=datetime(2025, 3, 10, 8, 30, tzinfo=timezone.utc),
        end=datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc),
        created=fixed_created,
        last_modified=fixed_created,
    )


@pytest.fixture
def all_day_event(fixed_created: datetime) -> Event:
    """All-day event with no end."""
    return Event(
        uid="test-uid-3@icsforge",
        summary="Holiday",
        start=datetime(2025, 3, 10),
        all_day=True,
        created=fixed_created,
        last_modified=fixed_created,
    )


@pytest.fixture
def display_reminder() -> Reminder:
    """Fifteen minutes before, DISPLAY."""
    return Reminder.relative(timedelta(minutes=-15))


# ============================================================================
# Calendar and Serializer Fixtures
# ============================================================================


@pytest.fixture
def calendar() -> Calendar:
    """Empty calendar with default metadata."""
    return Calendar.new()


@pytest.fixture
def serializer() -> ICSSerializer:
    """Serializer with the standard 75-octet fold limit."""
    return ICSSerializer()
