"""Slot calendar: the fixed catalog of bookable time-of-day offsets."""

from datetime import date, datetime, time, timedelta

from app.config import Settings, settings

MORNING = "morning"
AFTERNOON = "afternoon"
EVENING = "evening"


def format_offset(offset: time) -> str:
    """Render an offset as HH:MM."""
    return offset.strftime("%H:%M")


class SlotCalendar:
    """
    Deterministic catalog of bookable offsets for a working day.

    The catalog runs from ``day_start`` to ``day_end`` inclusive on a fixed
    interval. With the defaults (09:00-17:00 every 30 minutes) it holds 17
    offsets. Nothing is cached between calls.
    """

    def __init__(
        self,
        day_start: time = time(9, 0),
        day_end: time = time(17, 0),
        interval_minutes: int = 30,
        afternoon_start: time = time(12, 0),
        evening_start: time = time(17, 0),
    ):
        """
        Initialize the calendar.

        Raises:
            ValueError: If the interval is not positive or the day ends before it starts
        """
        if interval_minutes <= 0:
            raise ValueError("Slot interval must be a positive number of minutes")
        if day_end < day_start:
            raise ValueError("Slot day end must not be before day start")
        if evening_start < afternoon_start:
            raise ValueError("Evening session must not start before the afternoon session")

        self.day_start = day_start
        self.day_end = day_end
        self.interval = timedelta(minutes=interval_minutes)
        self.afternoon_start = afternoon_start
        self.evening_start = evening_start

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "SlotCalendar":
        """Build the calendar from application settings."""
        return cls(
            day_start=config.slot_day_start,
            day_end=config.slot_day_end,
            interval_minutes=config.slot_interval_minutes,
            afternoon_start=config.slot_afternoon_start,
            evening_start=config.slot_evening_start,
        )

    @property
    def interval_minutes(self) -> int:
        return int(self.interval.total_seconds() // 60)

    def offsets(self) -> list[time]:
        """Ordered catalog of offsets."""
        # Anchor on an arbitrary date so time arithmetic cannot wrap past midnight
        anchor = date(2000, 1, 1)
        current = datetime.combine(anchor, self.day_start)
        end = datetime.combine(anchor, self.day_end)

        result: list[time] = []
        while current <= end:
            result.append(current.time())
            current += self.interval
        return result

    def contains(self, offset: time) -> bool:
        """Whether an offset is a catalog member (seconds and microseconds must be zero)."""
        if offset.second or offset.microsecond:
            return False
        return offset.replace(tzinfo=None) in self.offsets()

    def session_of(self, offset: time) -> str:
        """Name of the session an offset belongs to."""
        if offset < self.afternoon_start:
            return MORNING
        if offset < self.evening_start:
            return AFTERNOON
        return EVENING

    def sessions(self, offsets: list[time] | None = None) -> list[tuple[str, list[time]]]:
        """Partition offsets into named sessions in day order, omitting empty ones."""
        grouped: dict[str, list[time]] = {MORNING: [], AFTERNOON: [], EVENING: []}
        for offset in self.offsets() if offsets is None else offsets:
            grouped[self.session_of(offset)].append(offset)
        return [(name, slots) for name, slots in grouped.items() if slots]

    def bookable(self, day: date, now: datetime) -> list[time]:
        """
        Offsets still bookable on ``day`` given the clinic-local ``now``.

        Same-day offsets at or before the current time are dropped; past days
        have none.
        """
        today = now.date()
        if day < today:
            return []
        if day > today:
            return self.offsets()
        current = now.time().replace(tzinfo=None)
        return [offset for offset in self.offsets() if offset > current]
