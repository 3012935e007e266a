"""OHLC bar data models."""

from pydantic import BaseModel, ConfigDict, Field


class Bar(BaseModel):
    """One interval of OHLC data.

    Timestamps are epoch milliseconds and unique per symbol/timeframe.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float | None = None


class BarSeries(BaseModel):
    """Ordered buffer of recent bars for one symbol and timeframe."""

    symbol: str
    timeframe: str
    bars: list[Bar] = Field(default_factory=list)
    max_size: int = 200

    def add(self, bar: Bar) -> None:
        """Add a bar, keeping ascending timestamp order and the size bound."""
        if self.bars and bar.timestamp <= self.bars[-1].timestamp:
            # Same interval still forming: replace it
            if bar.timestamp == self.bars[-1].timestamp:
                self.bars[-1] = bar
            return

        self.bars.append(bar)
        if len(self.bars) > self.max_size:
            self.bars = self.bars[-self.max_size :]

    def replace(self, bars: list[Bar]) -> None:
        """Swap the whole series for a freshly fetched one."""
        self.bars = list(bars[-self.max_size :])

    def clear(self) -> None:
        self.bars = []

    @property
    def latest(self) -> Bar | None:
        return self.bars[-1] if self.bars else None

    def closes(self) -> list[float]:
        """Get list of close prices."""
        return [b.close for b in self.bars]

    def __len__(self) -> int:
        return len(self.bars)


class Quote(BaseModel):
    """Latest bid/ask for a symbol."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    bid: float
    ask: float
    timestamp: int

    @property
    def mid(self) -> float:
        return (self.bid + self.ask) / 2

    @property
    def spread(self) -> float:
        return self.ask - self.bid


class VenueStatus(BaseModel):
    """Liveness of the trading venue."""

    model_config = ConfigDict(frozen=True)

    is_active: bool
    message: str | None = None
