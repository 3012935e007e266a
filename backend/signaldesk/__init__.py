"""Signal desk service: market data clients, scheduler, notifications and API."""
