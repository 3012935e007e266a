"""Registry for market data providers.

Usage:
    @register_provider("my_feed")
    class MyFeed(HttpProvider):
        ...

    provider = create_provider("my_feed", api_key="...")
    providers = list_providers()
"""

from __future__ import annotations

import logging
from typing import Any

from signaldesk.errors import UnknownProviderError

logger = logging.getLogger(__name__)

# Global registry: provider_name -> provider_class
_REGISTRY: dict[str, type] = {}


def register_provider(name: str):
    """Decorator to register a provider class under a given name.

    Raises:
        ValueError: If a provider with the same name is already registered.
    """

    def decorator(cls):
        if name in _REGISTRY:
            raise ValueError(
                f"Provider '{name}' is already registered by {_REGISTRY[name].__name__}"
            )
        _REGISTRY[name] = cls
        cls.name = name
        logger.debug("Registered provider: %s -> %s", name, cls.__name__)
        return cls

    return decorator


def get_provider_class(name: str) -> type:
    """Get the provider class by name (without instantiating).

    Raises:
        UnknownProviderError: If no provider is registered under the given name.
    """
    cls = _REGISTRY.get(name)
    if cls is None:
        available = ", ".join(sorted(_REGISTRY.keys())) or "(none)"
        raise UnknownProviderError(
            f"Unknown market data provider '{name}'. Available: {available}"
        )
    return cls


def create_provider(name: str, **kwargs: Any):
    """Create a provider instance by name; kwargs go to the constructor."""
    return get_provider_class(name)(**kwargs)


def list_providers() -> list[str]:
    """Return a sorted list of registered provider names."""
    return sorted(_REGISTRY.keys())
