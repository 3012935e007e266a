"""Build OHLC bars from price ticks.

Used by quote-only feeds, which return a single rate per request. Ticks
are bucketed by period boundary alignment, so a bar covers
[period_start, period_start + timeframe).
"""

import logging
from dataclasses import dataclass, field

from signalcore.models import Bar, BarSeries, TIMEFRAME_MINUTES

logger = logging.getLogger(__name__)


@dataclass
class TickBarBuilder:
    """Accumulates ticks for one symbol/timeframe into a BarSeries."""

    symbol: str
    timeframe: str
    max_size: int = 500
    series: BarSeries = field(init=False)

    def __post_init__(self):
        if self.timeframe not in TIMEFRAME_MINUTES:
            raise ValueError(f"Unknown timeframe: {self.timeframe}")
        self.series = BarSeries(
            symbol=self.symbol, timeframe=self.timeframe, max_size=self.max_size
        )

    @property
    def period_ms(self) -> int:
        return TIMEFRAME_MINUTES[self.timeframe] * 60_000

    def period_start(self, timestamp_ms: int) -> int:
        """Get the period start timestamp for a tick timestamp."""
        return (timestamp_ms // self.period_ms) * self.period_ms

    def add_tick(self, price: float, timestamp_ms: int, volume: float | None = None) -> Bar:
        """Fold one tick into the current bar (or open a new one).

        Ticks older than the current bar are ignored.

        Returns:
            The bar the tick landed in
        """
        start = self.period_start(timestamp_ms)
        current = self.series.latest

        if current is not None and start < current.timestamp:
            logger.debug(f"Ignoring stale tick for {self.symbol} at {timestamp_ms}")
            return current

        if current is None or start > current.timestamp:
            bar = Bar(
                timestamp=start,
                open=price,
                high=price,
                low=price,
                close=price,
                volume=volume,
            )
        else:
            if volume is None:
                merged_volume = current.volume
            else:
                merged_volume = (current.volume or 0.0) + volume
            bar = Bar(
                timestamp=start,
                open=current.open,
                high=max(current.high, price),
                low=min(current.low, price),
                close=price,
                volume=merged_volume,
            )

        self.series.add(bar)
        return bar

    def bars(self, count: int) -> list[Bar]:
        """Return the most recent ``count`` bars, oldest first."""
        if count <= 0:
            return []
        return list(self.series.bars[-count:])
