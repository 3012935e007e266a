"""Scheduler state model."""

from pydantic import BaseModel, ConfigDict


class SchedulerState(BaseModel):
    """Mutable state owned by one SignalScheduler.

    - last_signal_time: epoch ms of the last emitted signal (0 = never)
    - countdown_active: True for a short window after a signal is emitted
    - is_connected / last_api_error: result of the latest market data fetch
    - venue_active: result of the latest venue liveness check
    - last_update / latency_ms: time and duration of the last good fetch
    """

    model_config = ConfigDict(frozen=False)

    last_signal_time: int = 0
    is_running: bool = False
    countdown_active: bool = False

    is_connected: bool = False
    last_api_error: str | None = None
    venue_active: bool = False
    last_status_check: int | None = None
    last_update: int | None = None
    latency_ms: float | None = None
