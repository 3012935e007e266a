"""Build the configured market data provider from settings."""

import logging

from signaldesk.clients.base import MarketDataProvider
from signaldesk.clients.http import HttpProvider
from signaldesk.clients.registry import get_provider_class
from signaldesk.config import Settings

logger = logging.getLogger(__name__)

_API_KEY_SETTINGS = {
    "alphavantage": "alphavantage_api_key",
    "exchangerate": "exchangerate_api_key",
}


def build_provider(settings: Settings) -> MarketDataProvider:
    """Instantiate ``settings.provider`` with its API key and HTTP options.

    Raises:
        UnknownProviderError: If the name is not registered.
    """
    cls = get_provider_class(settings.provider)
    kwargs = {}

    if issubclass(cls, HttpProvider):
        kwargs.update(
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            retry_backoff=settings.retry_backoff,
        )
        if settings.min_request_interval is not None:
            kwargs["min_request_interval"] = settings.min_request_interval

    key_setting = _API_KEY_SETTINGS.get(settings.provider)
    if key_setting:
        kwargs["api_key"] = getattr(settings, key_setting)

    logger.info(f"Using market data provider: {settings.provider}")
    return cls(**kwargs)
