"""Clock abstraction for "now" in the clinic timezone."""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, tzinfo

from app.config import settings


class Clock(ABC):
    """Source of the current instant, expressed in the clinic timezone."""

    def __init__(self, tz: tzinfo | None = None):
        """Initialize with the clinic timezone (defaults to settings)."""
        self.tz = tz or settings.clinic_tz

    @abstractmethod
    def now(self) -> datetime:
        """Current aware datetime in the clinic timezone."""

    def today(self) -> date:
        """Current civil date in the clinic timezone."""
        return self.now().date()

    def to_local(self, instant: datetime) -> datetime:
        """Convert an instant to clinic-local time; naive values are taken as UTC."""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        return instant.astimezone(self.tz)


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock pinned to a given instant. Used by tests and scripts."""

    def __init__(self, instant: datetime, tz: tzinfo | None = None):
        super().__init__(tz)
        self._instant = instant

    def now(self) -> datetime:
        return self.to_local(self._instant)

    def set(self, instant: datetime) -> None:
        self._instant = instant


def as_utc(value: datetime) -> datetime:
    """Normalize a stored or supplied instant to an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
