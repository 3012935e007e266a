"""Simulated FX feed: seeded random walk around fixed base rates.

Used for demos, offline development and as a fallback when every real
provider is rate limited. Always reports the venue as active.
"""

import logging
import random
from datetime import datetime
from typing import Callable

from signalcore.models import Bar, CurrencyPair, Quote, TIMEFRAME_MINUTES, VenueStatus, get_pair
from signalcore.timeutil import datetime_to_ms, utc_now
from signaldesk.clients.registry import register_provider
from signaldesk.errors import UnsupportedSymbolError, UnsupportedTimeframeError

logger = logging.getLogger(__name__)

# Units of currency per USD
BASE_RATES: dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.85,
    "GBP": 0.74,
    "JPY": 147.0,
    "AUD": 1.52,
    "CAD": 1.36,
    "CHF": 0.79,
    "NZD": 1.66,
}

# Per-bar relative volatility of the walk
BAR_VOLATILITY = 0.0004
# Initial rates fluctuate within +/-0.5% of the base
BASE_FLUCTUATION = 0.005


@register_provider("simulated")
class SimulatedProvider:
    """Deterministic (per seed) random-walk bars for every supported pair."""

    def __init__(
        self,
        seed: int | None = None,
        clock: Callable[[], datetime] = utc_now,
        volatility: float = BAR_VOLATILITY,
        history: int = 500,
    ):
        self._rng = random.Random(seed)
        self._clock = clock
        self.volatility = volatility
        self.history = history
        self._series: dict[tuple[str, str], list[Bar]] = {}

    def _resolve(self, symbol: str) -> CurrencyPair:
        pair = get_pair(symbol)
        if pair is None or pair.base not in BASE_RATES or pair.quote not in BASE_RATES:
            raise UnsupportedSymbolError(symbol)
        return pair

    def base_rate(self, pair: CurrencyPair) -> float:
        return BASE_RATES[pair.quote] / BASE_RATES[pair.base]

    def _next_bar(self, timestamp: int, prev_close: float, precision: int) -> Bar:
        step = self._rng.gauss(0.0, self.volatility)
        close = round(prev_close * (1 + step), precision)
        wick = abs(self._rng.gauss(0.0, self.volatility / 2)) * prev_close
        return Bar(
            timestamp=timestamp,
            open=prev_close,
            high=round(max(prev_close, close) + wick, precision),
            low=round(min(prev_close, close) - wick, precision),
            close=close,
            volume=float(self._rng.randint(50, 500)),
        )

    def _advance(self, pair: CurrencyPair, timeframe: str) -> list[Bar]:
        """Extend the walk up to the current period and return the series."""
        if timeframe not in TIMEFRAME_MINUTES:
            raise UnsupportedTimeframeError(timeframe)

        period_ms = TIMEFRAME_MINUTES[timeframe] * 60_000
        now_start = (datetime_to_ms(self._clock()) // period_ms) * period_ms
        precision = pair.price_precision
        key = (pair.symbol, timeframe)
        bars = self._series.get(key)

        if not bars:
            fluctuation = (self._rng.random() - 0.5) * 2 * BASE_FLUCTUATION
            price = round(self.base_rate(pair) * (1 + fluctuation), precision)
            start = now_start - (self.history - 1) * period_ms
            bars = []
            for i in range(self.history):
                bar = self._next_bar(start + i * period_ms, price, precision)
                bars.append(bar)
                price = bar.close
        else:
            while bars[-1].timestamp < now_start:
                bars.append(
                    self._next_bar(bars[-1].timestamp + period_ms, bars[-1].close, precision)
                )
            bars = bars[-self.history :]

        self._series[key] = bars
        return bars

    async def get_bars(self, symbol: str, timeframe: str, count: int) -> list[Bar]:
        pair = self._resolve(symbol)
        bars = self._advance(pair, timeframe)
        return list(bars[-count:]) if count > 0 else []

    async def get_latest_quote(self, symbol: str) -> Quote:
        pair = self._resolve(symbol)
        last = self._advance(pair, "1m")[-1]
        half_spread = last.close * 0.00005
        return Quote(
            symbol=pair.symbol,
            bid=last.close - half_spread,
            ask=last.close + half_spread,
            timestamp=datetime_to_ms(self._clock()),
        )

    async def get_venue_status(self) -> VenueStatus:
        return VenueStatus(is_active=True, message="Simulated feed")

    async def close(self) -> None:
        return None
