"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables (``SIGNALDESK_*``)."""

    model_config = SettingsConfigDict(
        env_prefix="SIGNALDESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Market data provider: "alphavantage", "exchangerate" or "simulated"
    provider: str = "simulated"
    alphavantage_api_key: str = ""
    exchangerate_api_key: str = ""
    request_timeout: float = 10.0
    min_request_interval: float | None = None  # seconds between upstream calls; None = provider default
    max_retries: int = 3
    retry_backoff: float = 1.0  # seconds, doubled per attempt

    # Selection
    symbol: str = "USDJPY"
    timeframe: str = "1m"
    bar_count: int = 100

    # Scheduler cadence (seconds)
    market_refresh_interval: float = 1.0
    venue_check_interval: float = 300.0
    precision_mode: bool = True
    precision_signal_interval: float = 60.0
    normal_signal_interval: float = 180.0

    # Signal gating
    min_signal_gap_ms: int = 120_000
    countdown_seconds: float = 15.0
    venue_fallback_active: bool = True
    enable_notifications: bool = True
    max_signal_log: int = 500

    # Trading calendar
    calendar_timezone: str = "Asia/Tokyo"
    blackout_margin_minutes: int = 30

    # Venue deep link opened from notifications
    trade_url: str = "https://jp.theoption.com/trading"

    # Start the scheduler when the service boots
    auto_start: bool = True
    status_broadcast_interval: float = 5.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    @property
    def signal_interval(self) -> float:
        """Signal tick interval for the current mode."""
        if self.precision_mode:
            return self.precision_signal_interval
        return self.normal_signal_interval


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
