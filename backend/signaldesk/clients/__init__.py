"""Market data providers.

Importing this package registers every built-in provider.
"""

from signaldesk.clients.base import MarketDataProvider
from signaldesk.clients.http import HttpProvider, RateLimiter, is_rate_limit_message
from signaldesk.clients.registry import (
    create_provider,
    get_provider_class,
    list_providers,
    register_provider,
)
from signaldesk.clients.alphavantage import AlphaVantageProvider
from signaldesk.clients.exchangerate import ExchangeRateProvider
from signaldesk.clients.simulated import SimulatedProvider
from signaldesk.clients.factory import build_provider

__all__ = [
    "MarketDataProvider",
    "HttpProvider",
    "RateLimiter",
    "is_rate_limit_message",
    "create_provider",
    "get_provider_class",
    "list_providers",
    "register_provider",
    "AlphaVantageProvider",
    "ExchangeRateProvider",
    "SimulatedProvider",
    "build_provider",
]
