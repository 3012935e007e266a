"""Business services."""

from signaldesk.services.notifier import (
    CompositeNotifier,
    LogNotifier,
    NotificationMessage,
    Notifier,
    WebSocketNotifier,
    build_notification,
)
from signaldesk.services.scheduler import SignalScheduler

__all__ = [
    "CompositeNotifier",
    "LogNotifier",
    "NotificationMessage",
    "Notifier",
    "WebSocketNotifier",
    "build_notification",
    "SignalScheduler",
]
