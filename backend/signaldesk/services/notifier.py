"""Signal notification fan-out.

The scheduler calls ``notify`` once per emitted signal and ignores the
result; delivery failures are logged here and never reach the scheduler.
"""

import logging
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from signalcore.models import Direction, Signal
from signaldesk.api.websocket import ConnectionManager

logger = logging.getLogger(__name__)

STRONG_VIBRATE_PATTERN = [200, 100, 200, 100, 200]


class NotificationMessage(BaseModel):
    """Display payload for a signal (desktop/push notification)."""

    id: str
    title: str
    body: str
    type: str = "signal"
    tag: str
    timestamp: int
    action_url: str
    require_interaction: bool = True
    vibrate: list[int] = []
    sound_frequency: int = 600
    countdown_seconds: int = 15


def build_notification(
    signal: Signal,
    trade_url: str,
    countdown_seconds: int = 15,
) -> NotificationMessage:
    """Build the notification shown for ``signal``.

    The tag is the signal id so repeated deliveries collapse into one.
    """
    arrow = "↑" if signal.direction == Direction.HIGH else "↓"
    body = (
        f"Confidence: {signal.confidence}% | Entry: {signal.entry_price:.3f}\n"
        f"{signal.expiry_time}-minute expiry recommended"
    )
    if signal.analysis:
        body += f"\n{signal.analysis}"

    strong = signal.confidence >= 85
    return NotificationMessage(
        id=f"notification_{signal.id}",
        title=f"{arrow} {signal.symbol} {signal.direction.value} signal",
        body=body,
        tag=signal.id,
        timestamp=signal.created_at,
        action_url=trade_url,
        vibrate=STRONG_VIBRATE_PATTERN if strong else [],
        sound_frequency=800 if strong else 600,
        countdown_seconds=countdown_seconds,
    )


@runtime_checkable
class Notifier(Protocol):
    """Receives every emitted signal exactly once."""

    async def notify(self, signal: Signal) -> None:
        ...


class LogNotifier:
    """Writes signals to the log."""

    def __init__(self, trade_url: str):
        self.trade_url = trade_url

    async def notify(self, signal: Signal) -> None:
        message = build_notification(signal, self.trade_url)
        logger.info(f"{message.title} | {message.body.splitlines()[0]} | {signal.strength.value}")


class WebSocketNotifier:
    """Pushes signals to connected dashboards."""

    def __init__(self, manager: ConnectionManager, trade_url: str):
        self.manager = manager
        self.trade_url = trade_url

    async def notify(self, signal: Signal) -> None:
        message = build_notification(signal, self.trade_url)
        await self.manager.send_signal(signal.to_wire(), message.model_dump())


class CompositeNotifier:
    """Fans a signal out to several notifiers, isolating their failures."""

    def __init__(self, notifiers: list[Notifier] | None = None):
        self.notifiers: list[Notifier] = list(notifiers or [])

    def add(self, notifier: Notifier) -> None:
        self.notifiers.append(notifier)

    async def notify(self, signal: Signal) -> None:
        for notifier in self.notifiers:
            try:
                await notifier.notify(signal)
            except Exception as e:
                logger.error(f"Notifier {type(notifier).__name__} failed for {signal.id}: {e}")
