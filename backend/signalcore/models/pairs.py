"""Tradable currency pairs and timeframes."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Timeframe(str, Enum):
    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H4 = "4h"
    D1 = "1d"


TIMEFRAME_MINUTES: dict[str, int] = {
    "1m": 1,
    "5m": 5,
    "15m": 15,
    "30m": 30,
    "1h": 60,
    "4h": 240,
    "1d": 1440,
}


class CurrencyPair(BaseModel):
    """A forex pair offered by the venue."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    base: str
    quote: str
    payout_rate: int = 80  # percent

    @property
    def display_name(self) -> str:
        return f"{self.base}/{self.quote}"

    @property
    def price_precision(self) -> int:
        """Decimal places used when displaying prices."""
        return 3 if self.quote == "JPY" else 5


PAIRS: dict[str, CurrencyPair] = {
    p.symbol: p
    for p in (
        CurrencyPair(symbol="USDJPY", base="USD", quote="JPY", payout_rate=85),
        CurrencyPair(symbol="EURUSD", base="EUR", quote="USD", payout_rate=85),
        CurrencyPair(symbol="GBPJPY", base="GBP", quote="JPY", payout_rate=80),
        CurrencyPair(symbol="EURJPY", base="EUR", quote="JPY", payout_rate=82),
        CurrencyPair(symbol="AUDUSD", base="AUD", quote="USD", payout_rate=78),
        CurrencyPair(symbol="GBPUSD", base="GBP", quote="USD"),
        CurrencyPair(symbol="USDCAD", base="USD", quote="CAD"),
        CurrencyPair(symbol="USDCHF", base="USD", quote="CHF"),
        CurrencyPair(symbol="NZDUSD", base="NZD", quote="USD"),
        CurrencyPair(symbol="EURGBP", base="EUR", quote="GBP"),
    )
}

# Pairs with the best historical hit rate for 1-minute options
RECOMMENDED_PAIRS = ("USDJPY", "EURUSD", "GBPJPY")


def get_timeframe(value: str) -> Timeframe | None:
    """Look up a timeframe by label (``1m``, ``5m`` ...)."""
    try:
        return Timeframe(value)
    except ValueError:
        return None


def get_pair(symbol: str) -> CurrencyPair | None:
    """Look up a pair by symbol (``USDJPY``, ``usd/jpy`` and ``USD_JPY`` all work)."""
    key = symbol.upper().replace("/", "").replace("_", "")
    return PAIRS.get(key)
