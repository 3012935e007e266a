"""Tests for market data providers."""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from signaldesk.clients import (
    AlphaVantageProvider,
    ExchangeRateProvider,
    HttpProvider,
    RateLimiter,
    SimulatedProvider,
    build_provider,
    create_provider,
    get_provider_class,
    is_rate_limit_message,
    list_providers,
    register_provider,
)
from signaldesk.config import Settings
from signaldesk.errors import (
    MalformedPayloadError,
    MarketDataError,
    ProviderUnavailableError,
    RateLimitError,
    UnknownProviderError,
    UnsupportedSymbolError,
    UnsupportedTimeframeError,
)

NOW = datetime(2024, 1, 8, 0, 31, 30, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


def mock_transport(handler, calls=None):
    def wrapped(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)

    return httpx.MockTransport(wrapped)


INTRADAY_PAYLOAD = {
    "Meta Data": {"1. Information": "FX Intraday (1min) Time Series"},
    "Time Series FX (1min)": {
        "2024-01-08 00:31:00": {"1. open": "144.10", "2. high": "144.20", "3. low": "144.00", "4. close": "144.15"},
        "2024-01-08 00:29:00": {"1. open": "143.90", "2. high": "144.00", "3. low": "143.80", "4. close": "143.95"},
        "2024-01-08 00:30:00": {"1. open": "143.95", "2. high": "144.12", "3. low": "143.90", "4. close": "144.10"},
    },
}

QUOTE_PAYLOAD = {
    "Realtime Currency Exchange Rate": {
        "1. From_Currency Code": "USD",
        "3. To_Currency Code": "JPY",
        "5. Exchange Rate": "144.15",
        "6. Last Refreshed": "2024-01-08 00:31:00",
        "8. Bid Price": "144.14",
        "9. Ask Price": "144.16",
    }
}


class TestRateLimitMessage:
    @pytest.mark.parametrize(
        "message",
        [
            "Thank you for using Alpha Vantage! Our standard API call frequency is 5 calls per minute.",
            "HTTP 429",
            "Too Many Requests",
            "quota-reached",
            "rate limit exceeded",
        ],
    )
    def test_rate_limit_texts(self, message):
        assert is_rate_limit_message(message)

    @pytest.mark.parametrize("message", [None, "", "Invalid API call", "unsupported-code"])
    def test_other_texts(self, message):
        assert not is_rate_limit_message(message)


class TestAlphaVantageProvider:
    @pytest.mark.asyncio
    async def test_get_bars_sorted_and_limited(self):
        calls = []
        provider = AlphaVantageProvider(
            api_key="key",
            transport=mock_transport(lambda r: httpx.Response(200, json=INTRADAY_PAYLOAD), calls),
        )

        bars = await provider.get_bars("USDJPY", "1m", 2)
        await provider.close()

        assert [b.close for b in bars] == [144.10, 144.15]
        assert bars[0].timestamp < bars[1].timestamp
        assert bars[-1].timestamp == int(datetime(2024, 1, 8, 0, 31, tzinfo=timezone.utc).timestamp() * 1000)
        assert bars[-1].volume is None

        params = calls[0].url.params
        assert calls[0].url.path == "/query"
        assert params["function"] == "FX_INTRADAY"
        assert params["interval"] == "1min"
        assert params["from_symbol"] == "USD"
        assert params["to_symbol"] == "JPY"
        assert params["apikey"] == "key"

    @pytest.mark.asyncio
    async def test_daily_bars_use_fx_daily(self):
        calls = []
        payload = {
            "Time Series FX (Daily)": {
                "2024-01-05": {"1. open": "1.09", "2. high": "1.10", "3. low": "1.08", "4. close": "1.095"},
            }
        }
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(200, json=payload), calls)
        )

        bars = await provider.get_bars("EURUSD", "1d", 10)

        assert len(bars) == 1
        assert calls[0].url.params["function"] == "FX_DAILY"
        assert "interval" not in calls[0].url.params

    @pytest.mark.asyncio
    async def test_latest_quote(self):
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(200, json=QUOTE_PAYLOAD))
        )

        quote = await provider.get_latest_quote("USDJPY")

        assert quote.symbol == "USDJPY"
        assert quote.bid == 144.14
        assert quote.ask == 144.16

    @pytest.mark.asyncio
    async def test_quote_without_bid_ask_is_approximated(self):
        payload = {"Realtime Currency Exchange Rate": {"5. Exchange Rate": "100.0"}}
        provider = AlphaVantageProvider(
            clock=fixed_clock,
            transport=mock_transport(lambda r: httpx.Response(200, json=payload)),
        )

        quote = await provider.get_latest_quote("USDJPY")

        assert quote.bid == pytest.approx(99.99)
        assert quote.ask == pytest.approx(100.01)
        assert quote.timestamp == int(NOW.timestamp() * 1000)

    @pytest.mark.asyncio
    async def test_note_is_retried_as_rate_limit(self):
        responses = [
            httpx.Response(200, json={"Note": "Our standard API call frequency is 5 calls per minute"}),
            httpx.Response(200, json=QUOTE_PAYLOAD),
        ]
        calls = []
        provider = AlphaVantageProvider(
            min_request_interval=0,
            retry_backoff=0,
            transport=mock_transport(lambda r: responses[len(calls) - 1], calls),
        )

        quote = await provider.get_latest_quote("USDJPY")

        assert len(calls) == 2
        assert quote.bid == 144.14

    @pytest.mark.asyncio
    async def test_persistent_429_raises_rate_limit(self):
        calls = []
        provider = AlphaVantageProvider(
            max_retries=2,
            retry_backoff=0,
            min_request_interval=0,
            transport=mock_transport(lambda r: httpx.Response(429), calls),
        )

        with pytest.raises(RateLimitError):
            await provider.get_bars("USDJPY", "1m", 10)

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_error_message_is_malformed(self):
        calls = []
        provider = AlphaVantageProvider(
            transport=mock_transport(
                lambda r: httpx.Response(200, json={"Error Message": "Invalid API call"}), calls
            ),
        )

        with pytest.raises(MalformedPayloadError, match="Invalid API call"):
            await provider.get_bars("USDJPY", "1m", 10)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_missing_time_series_is_malformed(self):
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(200, json={"Meta Data": {}}))
        )

        with pytest.raises(MalformedPayloadError, match="no time series"):
            await provider.get_bars("USDJPY", "1m", 10)

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(503))
        )

        with pytest.raises(ProviderUnavailableError, match="503"):
            await provider.get_latest_quote("USDJPY")

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        provider = AlphaVantageProvider(transport=mock_transport(handler))

        with pytest.raises(ProviderUnavailableError, match="timed out"):
            await provider.get_latest_quote("USDJPY")

    @pytest.mark.asyncio
    async def test_non_json_is_malformed(self):
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(200, text="<html>busy</html>"))
        )

        with pytest.raises(MalformedPayloadError, match="not JSON"):
            await provider.get_latest_quote("USDJPY")

    @pytest.mark.asyncio
    async def test_unsupported_symbol_makes_no_request(self):
        calls = []
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(200, json=QUOTE_PAYLOAD), calls)
        )

        with pytest.raises(UnsupportedSymbolError) as exc_info:
            await provider.get_bars("BTCUSD", "1m", 10)

        assert exc_info.value.symbol == "BTCUSD"
        assert not isinstance(exc_info.value, MarketDataError)
        assert calls == []

    @pytest.mark.asyncio
    async def test_venue_status(self):
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(200, json=QUOTE_PAYLOAD))
        )

        status = await provider.get_venue_status()

        assert status.is_active


class TestExchangeRateProvider:
    @staticmethod
    def rates(rate):
        return lambda r: httpx.Response(
            200, json={"result": "success", "base_code": "USD", "conversion_rates": {"JPY": rate}}
        )

    @pytest.mark.asyncio
    async def test_quote(self):
        calls = []
        provider = ExchangeRateProvider(
            api_key="abc", clock=fixed_clock, transport=mock_transport(self.rates(150.0), calls)
        )

        quote = await provider.get_latest_quote("USDJPY")

        assert calls[0].url.path == "/v6/abc/latest/USD"
        assert quote.mid == pytest.approx(150.0)
        assert quote.bid < quote.ask

    @pytest.mark.asyncio
    async def test_bars_built_from_polls(self):
        now = [NOW]
        prices = [150.0, 150.5, 149.5]
        calls = []
        provider = ExchangeRateProvider(
            api_key="abc",
            clock=lambda: now[0],
            min_request_interval=0,
            transport=mock_transport(lambda r: self.rates(prices[len(calls) - 1])(r), calls),
        )

        await provider.get_bars("USDJPY", "1m", 10)
        await provider.get_bars("USDJPY", "1m", 10)
        now[0] = NOW.replace(minute=32)
        bars = await provider.get_bars("USDJPY", "1m", 10)

        assert len(bars) == 2
        assert bars[0].open == pytest.approx(150.0)
        assert bars[0].high == pytest.approx(150.5)
        assert bars[0].close == pytest.approx(150.5)
        assert bars[1].close == pytest.approx(149.5)

    @pytest.mark.asyncio
    async def test_quota_reached_is_rate_limit(self):
        calls = []
        provider = ExchangeRateProvider(
            max_retries=1,
            retry_backoff=0,
            min_request_interval=0,
            transport=mock_transport(
                lambda r: httpx.Response(200, json={"result": "error", "error-type": "quota-reached"}),
                calls,
            ),
        )

        with pytest.raises(RateLimitError):
            await provider.get_latest_quote("USDJPY")

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_invalid_key_is_malformed(self):
        provider = ExchangeRateProvider(
            transport=mock_transport(
                lambda r: httpx.Response(200, json={"result": "error", "error-type": "invalid-key"})
            )
        )

        with pytest.raises(MalformedPayloadError, match="invalid-key"):
            await provider.get_latest_quote("USDJPY")

    @pytest.mark.asyncio
    async def test_missing_quote_currency_is_malformed(self):
        provider = ExchangeRateProvider(
            transport=mock_transport(
                lambda r: httpx.Response(200, json={"result": "success", "conversion_rates": {"EUR": 0.9}})
            )
        )

        with pytest.raises(MalformedPayloadError, match="no JPY rate"):
            await provider.get_latest_quote("USDJPY")


class TestSimulatedProvider:
    @pytest.mark.asyncio
    async def test_deterministic_per_seed(self):
        a = SimulatedProvider(seed=7, clock=fixed_clock)
        b = SimulatedProvider(seed=7, clock=fixed_clock)

        assert await a.get_bars("USDJPY", "1m", 50) == await b.get_bars("USDJPY", "1m", 50)

    @pytest.mark.asyncio
    async def test_bars_shape(self):
        provider = SimulatedProvider(seed=1, clock=fixed_clock, history=100)

        bars = await provider.get_bars("EURUSD", "1m", 60)

        assert len(bars) == 60
        assert all(b.low <= min(b.open, b.close) and b.high >= max(b.open, b.close) for b in bars)
        assert all(b.volume and b.volume > 0 for b in bars)
        timestamps = [b.timestamp for b in bars]
        assert timestamps == sorted(timestamps)
        assert timestamps[-1] == int(NOW.replace(second=0).timestamp() * 1000)
        # Starts within +/-0.5% of 1/0.85 and drifts only slightly
        assert 1.10 < bars[0].close < 1.25

    @pytest.mark.asyncio
    async def test_series_advances_with_clock(self):
        now = [NOW]
        provider = SimulatedProvider(seed=3, clock=lambda: now[0], history=50)

        first = await provider.get_bars("USDJPY", "1m", 50)
        now[0] = NOW.replace(minute=33)
        second = await provider.get_bars("USDJPY", "1m", 50)

        assert second[-1].timestamp - first[-1].timestamp == 2 * 60_000
        assert second[:-2] == first[2:]

    @pytest.mark.asyncio
    async def test_venue_always_active(self):
        status = await SimulatedProvider(seed=1).get_venue_status()
        assert status.is_active

    @pytest.mark.asyncio
    async def test_unsupported_symbol(self):
        with pytest.raises(UnsupportedSymbolError):
            await SimulatedProvider(seed=1).get_latest_quote("XAUUSD")


class TestRegistry:
    def test_builtin_providers_registered(self):
        assert {"alphavantage", "exchangerate", "simulated"} <= set(list_providers())

    def test_get_provider_class(self):
        assert get_provider_class("simulated") is SimulatedProvider
        assert SimulatedProvider.name == "simulated"

    def test_unknown_provider(self):
        with pytest.raises(UnknownProviderError, match="Unknown market data provider"):
            create_provider("bloomberg")

    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError, match="already registered"):

            @register_provider("simulated")
            class Duplicate:
                pass

    def test_create_provider_passes_kwargs(self):
        provider = create_provider("simulated", seed=5, history=30)
        assert provider.history == 30


class TestBuildProvider:
    def test_http_provider_gets_settings(self):
        settings = Settings(
            provider="alphavantage",
            alphavantage_api_key="secret",
            max_retries=5,
            retry_backoff=0.5,
        )

        provider = build_provider(settings)

        assert isinstance(provider, AlphaVantageProvider)
        assert isinstance(provider, HttpProvider)
        assert provider.api_key == "secret"
        assert provider.max_retries == 5
        assert provider.retry_backoff == 0.5
        assert provider.rate_limiter.interval == AlphaVantageProvider.MIN_REQUEST_INTERVAL

    def test_configured_spacing_overrides_default(self):
        settings = Settings(provider="exchangerate", min_request_interval=5)
        assert build_provider(settings).rate_limiter.interval == 5

    def test_simulated_provider(self):
        assert isinstance(build_provider(Settings(provider="simulated")), SimulatedProvider)

    def test_unknown_provider(self):
        with pytest.raises(UnknownProviderError):
            build_provider(Settings(provider="nope"))


class TestProtocol:
    def test_builtin_providers_satisfy_protocol(self):
        from signaldesk.clients import MarketDataProvider

        assert isinstance(SimulatedProvider(seed=1), MarketDataProvider)
        assert isinstance(AlphaVantageProvider(), MarketDataProvider)
        assert isinstance(ExchangeRateProvider(), MarketDataProvider)


class TestUnsupportedTimeframe:
    """An unknown timeframe is a configuration error, never a transient one."""

    @pytest.mark.asyncio
    async def test_simulated(self):
        with pytest.raises(UnsupportedTimeframeError) as exc_info:
            await SimulatedProvider(seed=1, clock=fixed_clock).get_bars("USDJPY", "2m", 10)

        assert exc_info.value.timeframe == "2m"
        assert not isinstance(exc_info.value, MarketDataError)

    @pytest.mark.asyncio
    async def test_alphavantage_makes_no_request(self):
        calls = []
        provider = AlphaVantageProvider(
            transport=mock_transport(lambda r: httpx.Response(200, json=INTRADAY_PAYLOAD), calls)
        )

        with pytest.raises(UnsupportedTimeframeError):
            await provider.get_bars("USDJPY", "7m", 10)

        assert calls == []

    @pytest.mark.asyncio
    async def test_exchangerate_makes_no_request(self):
        calls = []
        provider = ExchangeRateProvider(
            transport=mock_transport(lambda r: httpx.Response(200, json={}), calls)
        )

        with pytest.raises(UnsupportedTimeframeError):
            await provider.get_bars("USDJPY", "2m", 10)

        assert calls == []


class TestRequestSpacing:
    def test_provider_defaults(self):
        assert AlphaVantageProvider().rate_limiter.interval == 12.0
        assert ExchangeRateProvider().rate_limiter.interval == 60.0
        assert AlphaVantageProvider(min_request_interval=0).rate_limiter.interval == 0

    @pytest.mark.asyncio
    async def test_rate_limiter_spaces_calls(self):
        limiter = RateLimiter(min_interval=0.05)
        loop = asyncio.get_running_loop()

        start = loop.time()
        await limiter.acquire()
        first = loop.time()
        await limiter.acquire()
        second = loop.time()

        assert first - start < 0.05
        assert second - start >= 0.045
