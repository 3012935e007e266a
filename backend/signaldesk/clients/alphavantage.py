"""Alpha Vantage FX client (intraday/daily bars and realtime exchange rates)."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from signalcore.models import Bar, CurrencyPair, Quote, VenueStatus, get_pair
from signalcore.timeutil import datetime_to_ms, utc_now
from signaldesk.clients.http import HttpProvider, is_rate_limit_message
from signaldesk.clients.registry import register_provider
from signaldesk.errors import (
    MalformedPayloadError,
    UnsupportedSymbolError,
    UnsupportedTimeframeError,
)

logger = logging.getLogger(__name__)

# Alpha Vantage has no 4h interval; 1h is used instead
TIMEFRAME_MAPPING: dict[str, str] = {
    "1m": "1min",
    "5m": "5min",
    "15m": "15min",
    "30m": "30min",
    "1h": "60min",
    "4h": "60min",
    "1d": "daily",
}

_RATE_KEY = "Realtime Currency Exchange Rate"


def _parse_time(value: str) -> datetime:
    """Parse '2024-01-02 09:31:00' or '2024-01-02' as UTC."""
    fmt = "%Y-%m-%d %H:%M:%S" if " " in value else "%Y-%m-%d"
    return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)


@register_provider("alphavantage")
class AlphaVantageProvider(HttpProvider):
    """Alpha Vantage FX API client.

    Calls are spaced to fit the free tier (5 requests per minute) unless
    ``min_request_interval`` is given.
    """

    BASE_URL = "https://www.alphavantage.co"
    # Free tier: 5 requests per minute
    MIN_REQUEST_INTERVAL = 12.0

    def __init__(
        self,
        api_key: str = "demo",
        clock: Callable[[], datetime] = utc_now,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key or "demo"
        self._clock = clock

    def _rate_limit_reason(self, data: Any) -> str | None:
        if not isinstance(data, dict):
            return None
        for key in ("Note", "Information"):
            message = data.get(key)
            if message and is_rate_limit_message(message):
                return message
        return None

    def _check_payload(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise MalformedPayloadError(f"{self.name}: unexpected payload type")
        if "Error Message" in data:
            raise MalformedPayloadError(f"Alpha Vantage API Error: {data['Error Message']}")

    def _resolve(self, symbol: str) -> CurrencyPair:
        pair = get_pair(symbol)
        if pair is None:
            raise UnsupportedSymbolError(symbol)
        return pair

    async def get_bars(self, symbol: str, timeframe: str, count: int) -> list[Bar]:
        """
        Fetch FX bars.

        Args:
            symbol: Pair symbol (e.g. "USDJPY")
            timeframe: Bar timeframe ("1m" ... "1d")
            count: Maximum number of bars

        Returns:
            Bars ascending by timestamp, newest last
        """
        pair = self._resolve(symbol)
        interval = TIMEFRAME_MAPPING.get(timeframe)
        if interval is None:
            raise UnsupportedTimeframeError(timeframe)

        params = {
            "from_symbol": pair.base,
            "to_symbol": pair.quote,
            "apikey": self.api_key,
        }
        if interval == "daily":
            params["function"] = "FX_DAILY"
        else:
            params["function"] = "FX_INTRADAY"
            params["interval"] = interval
            params["outputsize"] = "compact" if count <= 100 else "full"

        data = await self._request("GET", "/query", params)

        series_key = next((k for k in data if k.startswith("Time Series")), None)
        if series_key is None or not isinstance(data[series_key], dict):
            raise MalformedPayloadError(f"{self.name}: no time series data found in response")

        bars = []
        try:
            for stamp, values in data[series_key].items():
                bars.append(
                    Bar(
                        timestamp=datetime_to_ms(_parse_time(stamp)),
                        open=float(values["1. open"]),
                        high=float(values["2. high"]),
                        low=float(values["3. low"]),
                        close=float(values["4. close"]),
                    )
                )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedPayloadError(f"{self.name}: bad bar entry: {e}") from e

        bars.sort(key=lambda b: b.timestamp)
        return bars[-count:] if count > 0 else []

    async def get_latest_quote(self, symbol: str) -> Quote:
        """Fetch the realtime exchange rate; bid/ask are approximated when absent."""
        pair = self._resolve(symbol)
        data = await self._request(
            "GET",
            "/query",
            {
                "function": "CURRENCY_EXCHANGE_RATE",
                "from_currency": pair.base,
                "to_currency": pair.quote,
                "apikey": self.api_key,
            },
        )

        rate = data.get(_RATE_KEY)
        if not isinstance(rate, dict):
            raise MalformedPayloadError(f"{self.name}: missing '{_RATE_KEY}'")

        try:
            current = float(rate["5. Exchange Rate"])
            bid = float(rate.get("8. Bid Price") or 0) or current * 0.9999
            ask = float(rate.get("9. Ask Price") or 0) or current * 1.0001
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedPayloadError(f"{self.name}: bad exchange rate entry: {e}") from e

        refreshed = rate.get("6. Last Refreshed")
        try:
            timestamp = datetime_to_ms(_parse_time(refreshed)) if refreshed else None
        except ValueError:
            timestamp = None
        if timestamp is None:
            timestamp = datetime_to_ms(self._clock())

        return Quote(symbol=pair.symbol, bid=bid, ask=ask, timestamp=timestamp)

    async def get_venue_status(self) -> VenueStatus:
        """Check the API with a USD/JPY quote; failures propagate to the caller."""
        await self.get_latest_quote("USDJPY")
        return VenueStatus(is_active=True, message="Alpha Vantage API is operational")
