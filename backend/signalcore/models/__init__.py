"""Data models."""

from signalcore.models.bar import Bar, BarSeries, Quote, VenueStatus
from signalcore.models.pairs import (
    PAIRS,
    RECOMMENDED_PAIRS,
    TIMEFRAME_MINUTES,
    CurrencyPair,
    Timeframe,
    get_pair,
    get_timeframe,
)
from signalcore.models.signal import (
    BollingerBands,
    Direction,
    IndicatorSnapshot,
    Signal,
    Strength,
    TradeResult,
    generate_signal_id,
)
from signalcore.models.state import SchedulerState

__all__ = [
    "Bar",
    "BarSeries",
    "Quote",
    "VenueStatus",
    "PAIRS",
    "RECOMMENDED_PAIRS",
    "TIMEFRAME_MINUTES",
    "CurrencyPair",
    "Timeframe",
    "get_pair",
    "get_timeframe",
    "BollingerBands",
    "Direction",
    "IndicatorSnapshot",
    "Signal",
    "Strength",
    "TradeResult",
    "generate_signal_id",
    "SchedulerState",
]
