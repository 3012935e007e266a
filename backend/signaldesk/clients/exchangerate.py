"""ExchangeRate-API client.

The upstream only publishes latest conversion rates, so bars are built
locally from each polled mid price.
"""

import logging
from datetime import datetime
from typing import Any, Callable

from signalcore.aggregator import TickBarBuilder
from signalcore.models import Bar, CurrencyPair, Quote, VenueStatus, get_pair, get_timeframe
from signalcore.timeutil import datetime_to_ms, utc_now
from signaldesk.clients.http import HttpProvider, is_rate_limit_message
from signaldesk.clients.registry import register_provider
from signaldesk.errors import (
    MalformedPayloadError,
    UnsupportedSymbolError,
    UnsupportedTimeframeError,
)

logger = logging.getLogger(__name__)

# Synthetic half-spread applied to the mid rate
SPREAD_RATIO = 0.0001


@register_provider("exchangerate")
class ExchangeRateProvider(HttpProvider):
    """ExchangeRate-API v6 client with locally aggregated bars."""

    BASE_URL = "https://v6.exchangerate-api.com"
    # One poll per minute still fills 1-minute bars
    MIN_REQUEST_INTERVAL = 60.0

    def __init__(
        self,
        api_key: str = "",
        clock: Callable[[], datetime] = utc_now,
        max_bars: int = 500,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.max_bars = max_bars
        self._clock = clock
        self._builders: dict[tuple[str, str], TickBarBuilder] = {}

    def _rate_limit_reason(self, data: Any) -> str | None:
        if isinstance(data, dict) and data.get("result") == "error":
            error_type = str(data.get("error-type", ""))
            if error_type == "quota-reached" or is_rate_limit_message(error_type):
                return error_type
        return None

    def _check_payload(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise MalformedPayloadError(f"{self.name}: unexpected payload type")
        if data.get("result") != "success":
            raise MalformedPayloadError(
                f"ExchangeRate-API error: {data.get('error-type', 'unknown')}"
            )
        if not isinstance(data.get("conversion_rates"), dict):
            raise MalformedPayloadError(f"{self.name}: missing conversion_rates")

    def _resolve(self, symbol: str) -> CurrencyPair:
        pair = get_pair(symbol)
        if pair is None:
            raise UnsupportedSymbolError(symbol)
        return pair

    async def _fetch_rate(self, pair: CurrencyPair) -> float:
        data = await self._request("GET", f"/v6/{self.api_key}/latest/{pair.base}")
        try:
            return float(data["conversion_rates"][pair.quote])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedPayloadError(
                f"{self.name}: no {pair.quote} rate for base {pair.base}"
            ) from e

    async def get_latest_quote(self, symbol: str) -> Quote:
        pair = self._resolve(symbol)
        rate = await self._fetch_rate(pair)
        return Quote(
            symbol=pair.symbol,
            bid=rate * (1 - SPREAD_RATIO),
            ask=rate * (1 + SPREAD_RATIO),
            timestamp=datetime_to_ms(self._clock()),
        )

    async def get_bars(self, symbol: str, timeframe: str, count: int) -> list[Bar]:
        """Poll the latest rate, fold it into the local series and return it.

        The series only grows while the service runs; early calls return
        few bars.
        """
        pair = self._resolve(symbol)
        if get_timeframe(timeframe) is None:
            raise UnsupportedTimeframeError(timeframe)
        key = (pair.symbol, timeframe)
        builder = self._builders.get(key)
        if builder is None:
            builder = TickBarBuilder(pair.symbol, timeframe, max_size=self.max_bars)
            self._builders[key] = builder

        quote = await self.get_latest_quote(pair.symbol)
        builder.add_tick(quote.mid, quote.timestamp)
        return builder.bars(count)

    async def get_venue_status(self) -> VenueStatus:
        await self._fetch_rate(self._resolve("USDJPY"))
        return VenueStatus(is_active=True, message="ExchangeRate-API is operational")
