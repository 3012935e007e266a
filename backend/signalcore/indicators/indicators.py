"""Technical indicators for signal generation.

All functions return the *latest* value computed from the whole input
window; nothing is carried between calls. Windows shorter than the
requested period are still evaluated, but the divisor stays at the
nominal period (a short series therefore drags SMA and RSI toward zero).
Callers that need meaningful values should supply at least
``MIN_BARS`` bars.
"""

import math
from typing import Sequence

import numpy as np

from signalcore.models import Bar, BollingerBands, IndicatorSnapshot

BOLLINGER_PERIOD = 20
BOLLINGER_STD_MULT = 2.0
BOLLINGER_EXTREME_MULT = 3.0
EMA_PERIOD = 20
RSI_PERIOD = 14

MIN_BARS = BOLLINGER_PERIOD


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=np.float64)


def sma(values: Sequence[float], period: int) -> float:
    """
    Calculate the Simple Moving Average of the last ``period`` values.

    Args:
        values: Sequence of price values (oldest first)
        period: SMA period; also the divisor, even for shorter inputs

    Returns:
        SMA value, 0.0 for empty input
    """
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    window = arr[-period:]
    # Flat window: the mean is the value itself, exactly
    if window.size == period and np.ptp(window) == 0:
        return float(window[0])
    return math.fsum(window) / period


def population_std(values: Sequence[float], period: int) -> float:
    """
    Calculate the population standard deviation of the last ``period`` values
    around their SMA.

    Args:
        values: Sequence of price values (oldest first)
        period: Window length and divisor

    Returns:
        Standard deviation, 0.0 for empty input
    """
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    window = arr[-period:]
    mean = sma(values, period)
    variance = math.fsum((window - mean) ** 2) / period
    return math.sqrt(variance)


def ema(values: Sequence[float], period: int) -> float:
    """
    Calculate the Exponential Moving Average.

    Seeded with the first value and applied left-to-right over every
    value (not only the last ``period`` ones), with alpha = 2 / (period + 1).

    Args:
        values: Sequence of price values (oldest first)
        period: EMA period

    Returns:
        Latest EMA value, 0.0 for empty input
    """
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0

    multiplier = 2.0 / (period + 1)
    result = float(arr[0])
    for value in arr[1:]:
        result = float(value) * multiplier + result * (1 - multiplier)
    return result


def rsi(values: Sequence[float], period: int = RSI_PERIOD) -> float:
    """
    Calculate RSI from simple (not smoothed) average gain and loss.

    RS = avg_gain / avg_loss over the last ``period`` one-bar deltas; an
    average loss of zero is treated as 1 so a flat or rising series never
    divides by zero.

    Args:
        values: Sequence of close prices (oldest first)
        period: Number of deltas to average; also the divisor

    Returns:
        RSI value in [0, 100], 0.0 for fewer than two values
    """
    arr = _as_array(values)
    if arr.size < 2:
        return 0.0

    deltas = np.diff(arr)[-period:]
    avg_gain = math.fsum(np.where(deltas > 0, deltas, 0.0)) / period
    avg_loss = math.fsum(np.where(deltas < 0, -deltas, 0.0)) / period
    rs = avg_gain / (avg_loss or 1.0)
    return 100.0 - 100.0 / (1.0 + rs)


def bollinger_bands(
    values: Sequence[float],
    period: int = BOLLINGER_PERIOD,
    std_mult: float = BOLLINGER_STD_MULT,
    extreme_mult: float = BOLLINGER_EXTREME_MULT,
) -> BollingerBands:
    """
    Calculate Bollinger Bands plus an outer "extreme" envelope.

    middle = SMA(period), upper/lower = middle +/- std_mult * sigma,
    upper_extreme/lower_extreme = middle +/- extreme_mult * sigma.

    Args:
        values: Sequence of close prices (oldest first)
        period: Window length
        std_mult: Multiplier for the inner bands
        extreme_mult: Multiplier for the extreme bands

    Returns:
        BollingerBands (all zero for empty input)
    """
    if len(values) == 0:
        return BollingerBands()

    middle = sma(values, period)
    std = population_std(values, period)
    return BollingerBands(
        upper=middle + std_mult * std,
        middle=middle,
        lower=middle - std_mult * std,
        upper_extreme=middle + extreme_mult * std,
        lower_extreme=middle - extreme_mult * std,
    )


class IndicatorCalculator:
    """Calculator for every indicator the decision rules read."""

    def __init__(
        self,
        bollinger_period: int = BOLLINGER_PERIOD,
        ema_period: int = EMA_PERIOD,
        rsi_period: int = RSI_PERIOD,
    ):
        self.bollinger_period = bollinger_period
        self.ema_period = ema_period
        self.rsi_period = rsi_period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSnapshot:
        """
        Calculate the indicator snapshot for an ordered bar sequence.

        Args:
            bars: Bars sorted ascending by timestamp (most recent last)

        Returns:
            IndicatorSnapshot; the empty snapshot when ``bars`` is empty
        """
        if not bars:
            return IndicatorSnapshot.empty()

        closes = [b.close for b in bars]
        return IndicatorSnapshot(
            bollinger=bollinger_bands(closes, self.bollinger_period),
            ema20=ema(closes, self.ema_period),
            rsi=rsi(closes, self.rsi_period),
        )


_default_calculator = IndicatorCalculator()


def compute_indicators(bars: Sequence[Bar]) -> IndicatorSnapshot:
    """Compute Bollinger(20, 2/3), EMA20 and RSI(14) for ``bars``."""
    return _default_calculator.calculate(bars)
