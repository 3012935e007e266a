"""Signal scheduler: polls market data and emits gated signals.

Three periodic activities run while the scheduler is started:

- market refresh (every second): fetch bars, recompute indicators
- venue check (every 5 minutes): is the trading venue open
- signal tick (every minute in precision mode, 3 minutes otherwise)

All three run as asyncio tasks on one event loop. Shared state (bar
cache, indicators, SchedulerState) is only written between awaits, so a
tick never observes a half-applied refresh.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Awaitable, Callable

from signalcore.calendar import TradingCalendar
from signalcore.indicators import MIN_BARS, compute_indicators
from signalcore.models import (
    BarSeries,
    IndicatorSnapshot,
    SchedulerState,
    Signal,
    TradeResult,
    get_pair,
    get_timeframe,
)
from signalcore.strategy import DEFAULT_RULES, DecisionRules, decide
from signalcore.timeutil import datetime_to_ms, utc_now
from signaldesk.clients.base import MarketDataProvider
from signaldesk.config import Settings, get_settings
from signaldesk.errors import (
    ConfigurationError,
    MarketDataError,
    UnsupportedSymbolError,
    UnsupportedTimeframeError,
)
from signaldesk.services.notifier import Notifier

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _resolve_timeframe(timeframe: str) -> str:
    tf = get_timeframe(timeframe)
    if tf is None:
        raise UnsupportedTimeframeError(timeframe)
    return tf.value


class SignalScheduler:
    """Owns the scheduler state, bar cache and signal log for one selection."""

    def __init__(
        self,
        provider: MarketDataProvider,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
        calendar: TradingCalendar | None = None,
        clock: Clock = utc_now,
        rules: DecisionRules = DEFAULT_RULES,
    ):
        self.settings = settings or get_settings()
        self.provider = provider
        self.notifier = notifier
        self.calendar = calendar or TradingCalendar(
            tz=self.settings.calendar_timezone,
            blackout_margin_minutes=self.settings.blackout_margin_minutes,
        )
        self.clock = clock
        self.rules = rules

        pair = get_pair(self.settings.symbol)
        if pair is None:
            raise UnsupportedSymbolError(self.settings.symbol)
        self.symbol = pair.symbol
        self.timeframe = _resolve_timeframe(self.settings.timeframe)
        self.precision_mode = self.settings.precision_mode

        self.state = SchedulerState()
        self.series = self._new_series()
        self.indicators = IndicatorSnapshot.empty()
        self.current_price = 0.0
        self.signals: list[Signal] = []

        self._tasks: dict[str, asyncio.Task] = {}
        self._countdown: asyncio.TimerHandle | None = None

    def _new_series(self) -> BarSeries:
        return BarSeries(
            symbol=self.symbol,
            timeframe=self.timeframe,
            max_size=max(self.settings.bar_count, MIN_BARS),
        )

    def _now_ms(self) -> int:
        return datetime_to_ms(self.clock())

    @property
    def signal_interval(self) -> float:
        if self.precision_mode:
            return self.settings.precision_signal_interval
        return self.settings.normal_signal_interval

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start (or restart) the three periodic activities.

        Calling start while running cancels the current tasks first, so
        nothing is ever scheduled twice.
        """
        await self._cancel_tasks()

        s = self.settings
        self._tasks = {
            "market": asyncio.create_task(
                self._run_periodic("market refresh", s.market_refresh_interval,
                                   self.refresh_market_data, immediate=True)
            ),
            "venue": asyncio.create_task(
                self._run_periodic("venue check", s.venue_check_interval,
                                   self.check_venue_status, immediate=True)
            ),
            "signal": asyncio.create_task(
                self._run_periodic("signal tick", self.signal_interval,
                                   self.generate_signal_tick)
            ),
        }
        self.state.is_running = True
        logger.info(
            f"Signal generation started for {self.symbol} {self.timeframe} "
            f"({'precision' if self.precision_mode else 'normal'} mode, "
            f"tick every {self.signal_interval:.0f}s)"
        )

    async def stop(self) -> None:
        """Cancel every periodic activity and pending timer."""
        await self._cancel_tasks()
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        self.state.countdown_active = False
        self.state.is_running = False
        logger.info("Signal generation stopped")

    async def _cancel_tasks(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks = {}
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_periodic(
        self,
        name: str,
        interval: float,
        action: Callable[[], Awaitable[object]],
        immediate: bool = False,
    ) -> None:
        """Run ``action`` every ``interval`` seconds until cancelled.

        Exceptions from a tick are logged and the loop carries on.
        """
        if not immediate:
            await asyncio.sleep(interval)
        while True:
            try:
                await action()
            except Exception as e:
                logger.error(f"{name} failed: {e}")
            await asyncio.sleep(interval)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    async def select_symbol(self, symbol: str) -> None:
        """Switch to another pair; raises UnsupportedSymbolError immediately."""
        pair = get_pair(symbol)
        if pair is None:
            raise UnsupportedSymbolError(symbol)
        self.symbol = pair.symbol
        self._reset_cache()
        await self.refresh_market_data()

    async def select_timeframe(self, timeframe: str) -> None:
        """Switch timeframe; raises UnsupportedTimeframeError immediately."""
        self.timeframe = _resolve_timeframe(timeframe)
        self._reset_cache()
        await self.refresh_market_data()

    async def set_precision_mode(self, enabled: bool) -> None:
        """Switch tick cadence; restarts the activities if running."""
        self.precision_mode = enabled
        if self.state.is_running:
            await self.start()

    def _reset_cache(self) -> None:
        self.series = self._new_series()
        self.indicators = IndicatorSnapshot.empty()
        self.current_price = 0.0

    def clear_signals(self) -> None:
        self.signals = []

    def record_result(
        self,
        signal_id: str,
        result: TradeResult,
        exit_price: float | None = None,
        payout: float | None = None,
    ) -> Signal | None:
        """Attach a trade outcome to a logged signal.

        Returns:
            The updated signal, or None if the id is not in the log
        """
        for i, signal in enumerate(self.signals):
            if signal.id == signal_id:
                updated = signal.model_copy(
                    update={"result": result, "exit_price": exit_price, "payout": payout}
                )
                self.signals[i] = updated
                logger.info(f"Result recorded for {signal_id}: {result.value}")
                return updated
        return None

    # ------------------------------------------------------------------
    # Periodic activities
    # ------------------------------------------------------------------

    def _mark_disconnected(self, error: str) -> None:
        self.state.is_connected = False
        self.state.last_api_error = error

    async def refresh_market_data(self) -> bool:
        """Fetch bars for the current selection and recompute indicators.

        On failure the last good bars are kept and the connection is
        flagged as lost.

        Returns:
            True if fresh data was applied
        """
        symbol, timeframe = self.symbol, self.timeframe
        started = time.perf_counter()

        try:
            bars = await self.provider.get_bars(symbol, timeframe, self.settings.bar_count)
            quote = None
            if not bars:
                quote = await self.provider.get_latest_quote(symbol)
        except ConfigurationError as e:
            logger.error(f"Market data configuration error: {e}")
            self._mark_disconnected(str(e))
            return False
        except MarketDataError as e:
            logger.warning(f"Failed to fetch market data for {symbol}: {e}")
            self._mark_disconnected(str(e))
            return False
        except Exception as e:
            logger.error(f"Unexpected market data failure for {symbol}: {e}")
            self._mark_disconnected(str(e) or type(e).__name__)
            return False

        if (symbol, timeframe) != (self.symbol, self.timeframe):
            logger.debug(f"Selection changed during fetch, dropping {symbol} {timeframe} data")
            return False

        if bars:
            self.series.replace(bars)
            self.indicators = compute_indicators(self.series.bars)
            self.current_price = bars[-1].close
        else:
            self.current_price = quote.mid

        self.state.is_connected = True
        self.state.last_api_error = None
        self.state.last_update = self._now_ms()
        self.state.latency_ms = (time.perf_counter() - started) * 1000
        return True

    async def check_venue_status(self) -> bool:
        """Refresh the venue liveness flag.

        If the check itself fails, ``venue_fallback_active`` decides.
        """
        try:
            status = await self.provider.get_venue_status()
            active = status.is_active
            if active:
                logger.debug("Venue is active")
            else:
                self.state.last_api_error = status.message or "Venue is not currently active"
                logger.warning(f"Venue is currently inactive: {status.message}")
        except Exception as e:
            active = self.settings.venue_fallback_active
            self.state.last_api_error = str(e) or type(e).__name__
            logger.warning(
                f"Venue status check failed ({e}); "
                f"treating venue as {'active' if active else 'inactive'}"
            )

        self.state.venue_active = active
        self.state.last_status_check = self._now_ms()
        return active

    async def generate_signal_tick(self) -> Signal | None:
        """Run one signal attempt through the gates, in order.

        Returns:
            The emitted signal, or None if any gate failed or no rule matched
        """
        now = self.clock()
        now_ms = datetime_to_ms(now)

        if not self.state.venue_active:
            logger.info("Venue is not active - skipping signal generation")
            return None

        if now_ms - self.state.last_signal_time < self.settings.min_signal_gap_ms:
            logger.debug("Signal gap too short, waiting")
            return None

        if not self.calendar.is_optimal_trading_time(now):
            logger.debug("Outside recommended trading hours")
            return None

        if self.calendar.should_avoid_news(now):
            logger.info("Inside news blackout or weekend - skipping")
            return None

        latest = self.series.latest
        if latest is None:
            logger.info("Market data missing, refreshing")
            await self.refresh_market_data()
            return None

        indicators = compute_indicators(self.series.bars)
        signal = decide(
            self.symbol,
            latest,
            indicators,
            timeframe=self.timeframe,
            now_ms=now_ms,
            rules=self.rules,
        )
        if signal is None:
            return None

        self._record(signal, now_ms)
        logger.info(
            f"Signal generated: {signal.symbol} {signal.direction.value} "
            f"(confidence {signal.confidence}%, {signal.strength.value})"
        )

        if self.notifier is not None and self.settings.enable_notifications:
            try:
                await self.notifier.notify(signal)
            except Exception as e:
                logger.error(f"Signal notification failed: {e}")

        return signal

    def _record(self, signal: Signal, now_ms: int) -> None:
        self.signals.append(signal)
        if len(self.signals) > self.settings.max_signal_log:
            self.signals = self.signals[-self.settings.max_signal_log :]
        self.state.last_signal_time = now_ms
        self._start_countdown()

    def _start_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
        self.state.countdown_active = True
        loop = asyncio.get_running_loop()
        self._countdown = loop.call_later(self.settings.countdown_seconds, self._end_countdown)

    def _end_countdown(self) -> None:
        self._countdown = None
        self.state.countdown_active = False

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Status view for the API and websocket clients."""
        return {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "precision_mode": self.precision_mode,
            "signal_interval": self.signal_interval,
            "provider": getattr(self.provider, "name", type(self.provider).__name__),
            "current_price": self.current_price,
            "bars": len(self.series),
            "signals": len(self.signals),
            "state": self.state.model_dump(),
        }
