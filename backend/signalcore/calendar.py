"""Static daily trading calendar: session windows and news blackouts.

Times are evaluated in one reference timezone (Tokyo by default). The
schedule is not tied to any market calendar; holidays are not modelled.
"""

from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, model_validator


class TradingWindow(BaseModel):
    """A daily window, both ends inclusive."""

    model_config = ConfigDict(frozen=True)

    start: time
    end: time

    @model_validator(mode="after")
    def _validate(self):
        if self.end < self.start:
            raise ValueError(f"window end {self.end} is before start {self.start}")
        return self

    def contains(self, minute_of_day: int) -> bool:
        return _minutes(self.start) <= minute_of_day <= _minutes(self.end)


# Tokyo morning and European open
DEFAULT_WINDOWS = (
    TradingWindow(start=time(9, 0), end=time(11, 0)),
    TradingWindow(start=time(15, 0), end=time(17, 0)),
)

# Scheduled economic releases (JP GDP, CN data, DE data, EU data, US data x2)
DEFAULT_BLACKOUTS = (
    time(8, 30),
    time(10, 30),
    time(16, 30),
    time(18, 30),
    time(21, 30),
    time(23, 30),
)

DEFAULT_TIMEZONE = "Asia/Tokyo"

_SATURDAY = 5
_SUNDAY = 6


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


class TradingCalendar:
    """Decides whether signal generation is allowed at a given instant."""

    def __init__(
        self,
        tz: str = DEFAULT_TIMEZONE,
        windows: tuple[TradingWindow, ...] | list[TradingWindow] = DEFAULT_WINDOWS,
        blackouts: tuple[time, ...] | list[time] = DEFAULT_BLACKOUTS,
        blackout_margin_minutes: int = 30,
    ):
        self.tz = ZoneInfo(tz)
        self.windows = tuple(windows)
        self.blackouts = tuple(blackouts)
        self.blackout_margin_minutes = blackout_margin_minutes

    def to_local(self, dt: datetime) -> datetime:
        """Convert to the calendar timezone. Naive datetimes are taken as UTC."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(self.tz)

    def is_optimal_trading_time(self, dt: datetime) -> bool:
        """True when ``dt`` falls inside one of the trading windows."""
        local = self.to_local(dt)
        minute_of_day = local.hour * 60 + local.minute
        return any(w.contains(minute_of_day) for w in self.windows)

    def is_weekend(self, dt: datetime) -> bool:
        return self.to_local(dt).weekday() in (_SATURDAY, _SUNDAY)

    def should_avoid_news(self, dt: datetime) -> bool:
        """True on weekends or within the margin around a blackout time.

        The margin does not wrap across midnight.
        """
        if self.is_weekend(dt):
            return True

        local = self.to_local(dt)
        minute_of_day = local.hour * 60 + local.minute
        return any(
            abs(minute_of_day - _minutes(b)) <= self.blackout_margin_minutes
            for b in self.blackouts
        )

    def is_signal_allowed(self, dt: datetime) -> bool:
        return self.is_optimal_trading_time(dt) and not self.should_avoid_news(dt)
