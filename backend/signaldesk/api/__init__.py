"""API endpoints."""

from signaldesk.api.routes import router
from signaldesk.api.websocket import ConnectionManager, manager, websocket_endpoint

__all__ = [
    "router",
    "manager",
    "websocket_endpoint",
    "ConnectionManager",
]
