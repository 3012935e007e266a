"""Rule-based decision function for 1-minute HIGH/LOW signals.

Rules, first match wins:
- close <= lower_extreme and RSI <= 30  -> HIGH, base 35 + 25
- close <= lower and RSI <= 35          -> HIGH, base 35 + 15
- close >= upper_extreme and RSI >= 70  -> LOW,  base 35 + 25
- close >= upper and RSI >= 65          -> LOW,  base 35 + 15

Boosts once a direction is chosen:
- +20 when price sits within 0.1% of EMA20
- +15 when the bar carries positive volume

Signals under 70 confidence are dropped.
"""

import logging
import time

from pydantic import BaseModel, ConfigDict

from signalcore.models import (
    Bar,
    Direction,
    IndicatorSnapshot,
    Signal,
    Strength,
    generate_signal_id,
)

logger = logging.getLogger(__name__)


class DecisionRules(BaseModel):
    """Thresholds used by :func:`decide`."""

    model_config = ConfigDict(frozen=True)

    base_confidence: int = 35
    extreme_bonus: int = 25
    band_bonus: int = 15

    extreme_oversold_rsi: float = 30
    oversold_rsi: float = 35
    extreme_overbought_rsi: float = 70
    overbought_rsi: float = 65

    ema_flat_ratio: float = 0.001
    ema_flat_bonus: int = 20
    volume_bonus: int = 15

    min_confidence: int = 70
    strong_confidence: int = 85
    medium_confidence: int = 75

    expiry_minutes: int = 1


DEFAULT_RULES = DecisionRules()


def classify_strength(confidence: int, rules: DecisionRules = DEFAULT_RULES) -> Strength:
    """Map a confidence score to a strength bucket."""
    if confidence >= rules.strong_confidence:
        return Strength.STRONG
    if confidence >= rules.medium_confidence:
        return Strength.MEDIUM
    return Strength.WEAK


def _choose_direction(
    close: float,
    indicators: IndicatorSnapshot,
    rules: DecisionRules,
) -> tuple[Direction | None, int, str | None]:
    """Apply the band/RSI rules. Returns (direction, bonus, reason)."""
    bands = indicators.bollinger
    rsi = indicators.rsi

    # A zero-width envelope (flat window or no data) has no band to touch
    if bands.upper <= bands.lower:
        return None, 0, None

    if close <= bands.lower_extreme and rsi <= rules.extreme_oversold_rsi:
        return Direction.HIGH, rules.extreme_bonus, "Below extreme lower band, RSI oversold"
    if close <= bands.lower and rsi <= rules.oversold_rsi:
        return Direction.HIGH, rules.band_bonus, "Below lower band, RSI weak"
    if close >= bands.upper_extreme and rsi >= rules.extreme_overbought_rsi:
        return Direction.LOW, rules.extreme_bonus, "Above extreme upper band, RSI overbought"
    if close >= bands.upper and rsi >= rules.overbought_rsi:
        return Direction.LOW, rules.band_bonus, "Above upper band, RSI strong"
    return None, 0, None


def decide(
    symbol: str,
    latest_bar: Bar,
    indicators: IndicatorSnapshot,
    *,
    timeframe: str = "1m",
    now_ms: int | None = None,
    rules: DecisionRules = DEFAULT_RULES,
) -> Signal | None:
    """
    Turn the latest bar and indicator snapshot into a signal.

    Pure apart from the generated id and timestamps.

    Args:
        symbol: Pair symbol (e.g. "USDJPY")
        latest_bar: Most recent bar; its close is the entry price
        indicators: Snapshot computed from the series ending at ``latest_bar``
        timeframe: Timeframe label stored on the signal
        now_ms: Creation time in epoch ms (defaults to the wall clock)
        rules: Threshold set

    Returns:
        Signal, or None when no rule matches or confidence is under the floor
    """
    close = latest_bar.close
    direction, bonus, reason = _choose_direction(close, indicators, rules)
    if direction is None:
        return None

    confidence = rules.base_confidence + bonus
    reasons = [reason]

    if close and abs(close - indicators.ema20) / close < rules.ema_flat_ratio:
        confidence += rules.ema_flat_bonus
        reasons.append("EMA20 flat trend confirmed")

    if latest_bar.volume and latest_bar.volume > 0:
        confidence += rules.volume_bonus
        reasons.append("Sufficient volume")

    if confidence < rules.min_confidence:
        logger.debug(
            "%s %s: confidence %d < %d threshold",
            symbol, direction.value, confidence, rules.min_confidence,
        )
        return None

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    return Signal(
        id=generate_signal_id(now_ms),
        symbol=symbol,
        timeframe=timeframe,
        direction=direction,
        strength=classify_strength(confidence, rules),
        entry_price=close,
        confidence=confidence,
        expiry_time=rules.expiry_minutes,
        indicators=indicators,
        analysis=", ".join(reasons),
        timestamp=now_ms,
        created_at=now_ms,
    )
