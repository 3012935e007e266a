"""Shared fixtures."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

from signalcore.models import (
    Bar,
    BollingerBands,
    Direction,
    IndicatorSnapshot,
    Quote,
    Signal,
    Strength,
    VenueStatus,
    generate_signal_id,
)
from signaldesk.config import Settings

TOKYO = ZoneInfo("Asia/Tokyo")

# Monday 09:30 Tokyo: inside the morning window, clear of blackouts
OPEN_TIME = datetime(2024, 1, 8, 9, 30, tzinfo=TOKYO)


def oversold_bars(symbol_price=100.0, volume=200.0, start_ms=0):
    """Bars whose last close sits below the extreme lower band with RSI near 5."""
    closes = [symbol_price if i % 2 == 0 else symbol_price + 0.01 for i in range(23)]
    closes.append(symbol_price - 1.0)
    return [
        Bar(timestamp=start_ms + i * 60_000, open=c, high=c, low=c, close=c, volume=volume)
        for i, c in enumerate(closes)
    ]


def flat_bars(price=150.0, count=30):
    return [
        Bar(timestamp=i * 60_000, open=price, high=price, low=price, close=price, volume=100)
        for i in range(count)
    ]


class FakeClock:
    """Settable clock."""

    def __init__(self, now: datetime = OPEN_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        provider="simulated",
        symbol="USDJPY",
        timeframe="1m",
        enable_notifications=True,
        countdown_seconds=15,
        venue_fallback_active=True,
    )


@pytest.fixture
def provider():
    """Mock provider returning oversold bars and an active venue."""
    mock = MagicMock()
    mock.name = "fake"
    mock.get_bars = AsyncMock(return_value=oversold_bars())
    mock.get_latest_quote = AsyncMock(
        return_value=Quote(symbol="USDJPY", bid=99.99, ask=100.01, timestamp=0)
    )
    mock.get_venue_status = AsyncMock(return_value=VenueStatus(is_active=True))
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def notifier():
    mock = MagicMock()
    mock.notify = AsyncMock()
    return mock


@pytest.fixture
def signal():
    return Signal(
        id=generate_signal_id(1_700_000_000_000),
        symbol="USDJPY",
        timeframe="1m",
        direction=Direction.HIGH,
        strength=Strength.STRONG,
        entry_price=149.6543,
        confidence=90,
        expiry_time=1,
        indicators=IndicatorSnapshot(
            bollinger=BollingerBands(
                upper=150.2, middle=150.0, lower=149.8, upper_extreme=150.3, lower_extreme=149.7
            ),
            ema20=149.66,
            rsi=22.0,
        ),
        analysis="Below extreme lower band, RSI oversold",
        timestamp=1_700_000_000_000,
        created_at=1_700_000_000_000,
    )
