"""Desk configuration loaded from trading.yaml.

Supports:
- Pair/timeframe selection and the market data provider
- Precision (1-minute ticks) vs normal (3-minute ticks) mode
- Custom trading windows and news blackout times
- Backward compatible: no YAML file = environment settings + default calendar
"""

import logging
from datetime import time
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, field_validator, model_validator

from signalcore.calendar import (
    DEFAULT_BLACKOUTS,
    DEFAULT_WINDOWS,
    TradingCalendar,
    TradingWindow,
)
from signalcore.models import TIMEFRAME_MINUTES, get_pair
from signaldesk.config import Settings

logger = logging.getLogger(__name__)


def _coerce_time(value):
    """YAML 1.1 reads unquoted 15:00 as the sexagesimal int 900."""
    if isinstance(value, int) and not isinstance(value, bool):
        return time(value // 60, value % 60)
    return value


class WindowEntry(BaseModel):
    """A trading window in the YAML config ("09:00" - "11:00")."""

    start: time
    end: time

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_time(cls, value):
        return _coerce_time(value)

    def to_window(self) -> TradingWindow:
        return TradingWindow(start=self.start, end=self.end)


class DeskConfig(BaseModel):
    """Top-level trading.yaml configuration.

    Fields left as None keep the value from the environment settings.
    """

    symbol: str | None = None
    timeframe: str | None = None
    provider: str | None = None
    precision_mode: bool | None = None
    timezone: str | None = None
    windows: list[WindowEntry] = []
    blackouts: list[time] = []
    blackout_margin_minutes: int | None = None

    @field_validator("symbol")
    @classmethod
    def _validate_symbol(cls, value: str | None) -> str | None:
        if value is None:
            return None
        pair = get_pair(value)
        if pair is None:
            raise ValueError(f"unsupported trading pair '{value}'")
        return pair.symbol

    @field_validator("blackouts", mode="before")
    @classmethod
    def _parse_blackouts(cls, value):
        if isinstance(value, list):
            return [_coerce_time(v) for v in value]
        return value

    @field_validator("timeframe")
    @classmethod
    def _validate_timeframe(cls, value: str | None) -> str | None:
        if value is not None and value not in TIMEFRAME_MINUTES:
            raise ValueError(
                f"timeframe must be one of {tuple(TIMEFRAME_MINUTES)}, got '{value}'"
            )
        return value

    @model_validator(mode="after")
    def _validate(self):
        if self.blackout_margin_minutes is not None and self.blackout_margin_minutes < 0:
            raise ValueError("blackout_margin_minutes must be >= 0")
        return self

    def apply(self, settings: Settings) -> Settings:
        """Return a copy of ``settings`` with the YAML overrides applied."""
        update = {
            "symbol": self.symbol,
            "timeframe": self.timeframe,
            "provider": self.provider,
            "precision_mode": self.precision_mode,
            "calendar_timezone": self.timezone,
            "blackout_margin_minutes": self.blackout_margin_minutes,
        }
        return settings.model_copy(
            update={k: v for k, v in update.items() if v is not None}
        )

    def build_calendar(self, settings: Settings) -> TradingCalendar:
        """Build the trading calendar, falling back to the default schedule."""
        windows = [w.to_window() for w in self.windows] or list(DEFAULT_WINDOWS)
        blackouts = list(self.blackouts) or list(DEFAULT_BLACKOUTS)
        return TradingCalendar(
            tz=self.timezone or settings.calendar_timezone,
            windows=windows,
            blackouts=blackouts,
            blackout_margin_minutes=(
                self.blackout_margin_minutes
                if self.blackout_margin_minutes is not None
                else settings.blackout_margin_minutes
            ),
        )


_DEFAULT_PATH = Path(__file__).parent.parent / "trading.yaml"


def load_desk_config(path: Path | None = None) -> DeskConfig:
    """Load desk config from YAML file.

    Falls back to defaults if the file doesn't exist.
    """
    config_path = path or _DEFAULT_PATH

    # Load .env so provider API keys are visible to Settings
    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info("No trading.yaml found at %s, using defaults", config_path)
        return DeskConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = DeskConfig(**raw)
    logger.info(
        "Loaded desk config: symbol=%s, timeframe=%s, provider=%s, %d windows, %d blackouts",
        config.symbol or "(env)",
        config.timeframe or "(env)",
        config.provider or "(env)",
        len(config.windows),
        len(config.blackouts),
    )
    return config
