"""Error classes for the signal desk.

Market data errors are transient: the scheduler logs them, flags the
connection as lost and retries on the next tick. Configuration errors
are not retryable and are reported to the caller as-is.
"""


class SignalDeskError(Exception):
    """Base error for signal desk operations."""
    pass


class MarketDataError(SignalDeskError):
    """Transient failure fetching market data."""
    pass


class RateLimitError(MarketDataError):
    """Upstream provider rate limit or quota exhausted (after retries)."""
    pass


class ProviderUnavailableError(MarketDataError):
    """Upstream provider timed out, refused the connection or returned 5xx."""
    pass


class MalformedPayloadError(MarketDataError):
    """Upstream payload could not be parsed."""
    pass


class ConfigurationError(SignalDeskError):
    """Invalid configuration; never retried."""
    pass


class UnsupportedSymbolError(ConfigurationError):
    """No symbol mapping exists for the requested pair."""

    def __init__(self, symbol: str):
        super().__init__(f"Unsupported trading pair: {symbol}")
        self.symbol = symbol


class UnknownProviderError(ConfigurationError):
    """No market data provider is registered under the requested name."""
    pass


class UnsupportedTimeframeError(ConfigurationError):
    """The requested bar timeframe is not one the desk supports."""

    def __init__(self, timeframe: str):
        super().__init__(f"Unsupported timeframe: {timeframe}")
        self.timeframe = timeframe
