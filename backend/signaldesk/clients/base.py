"""Market data provider protocol.

Every upstream feed is reached through this one interface, so the
scheduler never depends on which provider is configured.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from signalcore.models import Bar, Quote, VenueStatus


@runtime_checkable
class MarketDataProvider(Protocol):
    """Protocol that all market data providers must implement.

    Failures are reported as ``MarketDataError`` subclasses (transient)
    or ``UnsupportedSymbolError`` (configuration, never retried).
    """

    name: str

    async def get_bars(self, symbol: str, timeframe: str, count: int) -> list[Bar]:
        """Return at most ``count`` bars, ascending by timestamp, newest last."""
        ...

    async def get_latest_quote(self, symbol: str) -> Quote:
        """Return the latest bid/ask for ``symbol``."""
        ...

    async def get_venue_status(self) -> VenueStatus:
        """Return venue liveness; raises ``MarketDataError`` if it cannot be checked."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
