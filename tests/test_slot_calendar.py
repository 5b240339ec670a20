"""Tests for the slot calendar."""

from datetime import UTC, date, datetime, time

import pytest

from app.services.slot_calendar import (
    AFTERNOON,
    EVENING,
    MORNING,
    SlotCalendar,
    format_offset,
)


def test_default_catalog_has_seventeen_offsets():
    """Test the default catalog runs 09:00 to 17:00 inclusive every 30 minutes."""
    offsets = SlotCalendar().offsets()

    assert len(offsets) == 17
    assert offsets[0] == time(9, 0)
    assert offsets[-1] == time(17, 0)
    assert offsets == sorted(offsets)
    assert len(set(offsets)) == len(offsets)


def test_catalog_is_deterministic():
    """Test repeated calls return the same catalog."""
    calendar = SlotCalendar()
    assert calendar.offsets() == calendar.offsets()


def test_custom_interval():
    """Test a 60-minute interval."""
    calendar = SlotCalendar(day_start=time(8, 0), day_end=time(10, 0), interval_minutes=60)
    assert calendar.offsets() == [time(8, 0), time(9, 0), time(10, 0)]
    assert calendar.interval_minutes == 60


def test_invalid_configuration():
    """Test bad calendar settings are rejected."""
    with pytest.raises(ValueError):
        SlotCalendar(interval_minutes=0)
    with pytest.raises(ValueError):
        SlotCalendar(day_start=time(17, 0), day_end=time(9, 0))


def test_contains():
    """Test catalog membership checks."""
    calendar = SlotCalendar()

    assert calendar.contains(time(9, 0))
    assert calendar.contains(time(13, 30))
    assert calendar.contains(time(17, 0))
    assert not calendar.contains(time(8, 30))
    assert not calendar.contains(time(17, 30))
    assert not calendar.contains(time(9, 15))
    assert not calendar.contains(time(9, 0, 30))


def test_sessions_partition_the_day():
    """Test offsets are grouped into morning, afternoon and evening."""
    calendar = SlotCalendar()
    sessions = dict(calendar.sessions())

    assert [name for name, _ in calendar.sessions()] == [MORNING, AFTERNOON, EVENING]
    assert sessions[MORNING][0] == time(9, 0)
    assert sessions[MORNING][-1] == time(11, 30)
    assert sessions[AFTERNOON][0] == time(12, 0)
    assert sessions[AFTERNOON][-1] == time(16, 30)
    assert sessions[EVENING] == [time(17, 0)]
    assert sum(len(slots) for slots in sessions.values()) == 17


def test_empty_sessions_are_omitted():
    """Test a morning-only catalog yields a single session."""
    calendar = SlotCalendar(day_start=time(9, 0), day_end=time(11, 0))
    assert [name for name, _ in calendar.sessions()] == [MORNING]


def test_bookable_filters_by_clock():
    """Test same-day offsets at or before now are dropped."""
    calendar = SlotCalendar()
    now = datetime(2024, 6, 3, 12, 0, tzinfo=UTC)

    today = calendar.bookable(date(2024, 6, 3), now)
    assert today[0] == time(12, 30)
    assert time(12, 0) not in today

    assert calendar.bookable(date(2024, 6, 2), now) == []
    assert calendar.bookable(date(2024, 6, 4), now) == calendar.offsets()


def test_format_offset():
    """Test offsets render as HH:MM."""
    assert format_offset(time(9, 0)) == "09:00"
    assert format_offset(time(16, 30)) == "16:30"
