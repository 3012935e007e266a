"""Technical indicators (pure math, no I/O)."""

from signalcore.indicators.indicators import (
    MIN_BARS,
    IndicatorCalculator,
    bollinger_bands,
    compute_indicators,
    ema,
    population_std,
    rsi,
    sma,
)

__all__ = [
    "MIN_BARS",
    "IndicatorCalculator",
    "bollinger_bands",
    "compute_indicators",
    "ema",
    "population_std",
    "rsi",
    "sma",
]
