"""Tests for settings and the trading.yaml overlay."""

import textwrap
from datetime import time

import pytest
from pydantic import ValidationError

from signalcore.calendar import DEFAULT_BLACKOUTS, DEFAULT_WINDOWS
from signaldesk.config import Settings
from signaldesk.desk_config import DeskConfig, WindowEntry, load_desk_config


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.symbol == "USDJPY"
        assert settings.min_signal_gap_ms == 120_000
        assert settings.signal_interval == 60.0

    def test_normal_mode_interval(self):
        assert Settings(precision_mode=False).signal_interval == 180.0

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SIGNALDESK_SYMBOL", "EURUSD")
        monkeypatch.setenv("SIGNALDESK_PRECISION_MODE", "false")
        settings = Settings()
        assert settings.symbol == "EURUSD"
        assert settings.precision_mode is False


class TestDeskConfig:
    def test_empty_config_keeps_settings(self):
        settings = Settings(symbol="EURUSD", timeframe="5m")
        applied = DeskConfig().apply(settings)
        assert applied.symbol == "EURUSD"
        assert applied.timeframe == "5m"

    def test_apply_overrides(self):
        config = DeskConfig(symbol="gbp/jpy", provider="alphavantage", precision_mode=False)
        applied = config.apply(Settings())

        assert applied.symbol == "GBPJPY"
        assert applied.provider == "alphavantage"
        assert applied.signal_interval == 180.0

    def test_invalid_symbol(self):
        with pytest.raises(ValidationError, match="unsupported trading pair"):
            DeskConfig(symbol="BTCUSD")

    def test_invalid_timeframe(self):
        with pytest.raises(ValidationError, match="timeframe must be one of"):
            DeskConfig(timeframe="2m")

    def test_negative_margin(self):
        with pytest.raises(ValidationError, match="blackout_margin_minutes"):
            DeskConfig(blackout_margin_minutes=-1)

    def test_sexagesimal_times_are_coerced(self):
        """Unquoted 15:00 in YAML 1.1 loads as 900."""
        config = DeskConfig(windows=[{"start": 540, "end": 660}], blackouts=[510, "10:30"])
        assert config.windows[0].start == time(9, 0)
        assert config.windows[0].end == time(11, 0)
        assert config.blackouts == [time(8, 30), time(10, 30)]

    def test_default_calendar(self):
        calendar = DeskConfig().build_calendar(Settings())
        assert calendar.windows == tuple(DEFAULT_WINDOWS)
        assert calendar.blackouts == tuple(DEFAULT_BLACKOUTS)
        assert calendar.blackout_margin_minutes == 30

    def test_custom_calendar(self):
        config = DeskConfig(
            timezone="Europe/London",
            windows=[WindowEntry(start=time(8, 0), end=time(10, 0))],
            blackouts=[time(13, 30)],
            blackout_margin_minutes=15,
        )
        calendar = config.build_calendar(Settings())

        assert str(calendar.tz) == "Europe/London"
        assert len(calendar.windows) == 1
        assert calendar.blackouts == (time(13, 30),)
        assert calendar.blackout_margin_minutes == 15


class TestLoadDeskConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_desk_config(tmp_path / "trading.yaml")
        assert config == DeskConfig()

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "trading.yaml"
        path.write_text(textwrap.dedent("""
            symbol: EURJPY
            timeframe: 5m
            precision_mode: false
            windows:
              - start: 9:00
                end: 11:00
              - start: "15:00"
                end: "17:00"
            blackouts:
              - 8:30
              - "16:30"
        """))

        config = load_desk_config(path)

        assert config.symbol == "EURJPY"
        assert config.timeframe == "5m"
        assert config.precision_mode is False
        assert [w.start for w in config.windows] == [time(9, 0), time(15, 0)]
        assert config.blackouts == [time(8, 30), time(16, 30)]

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "trading.yaml"
        path.write_text("")
        assert load_desk_config(path) == DeskConfig()

    def test_invalid_yaml_symbol(self, tmp_path):
        path = tmp_path / "trading.yaml"
        path.write_text("symbol: DOGEUSD\n")
        with pytest.raises(ValidationError):
            load_desk_config(path)
