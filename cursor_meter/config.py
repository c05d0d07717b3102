"""Runtime configuration loaded from the environment / .env file."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_DIR = Path.home() / ".config" / "cursor-meter"


class Settings(BaseSettings):
    """Central configuration. Every field can be overridden with CURSOR_METER_<NAME>."""

    model_config = SettingsConfigDict(
        env_prefix="CURSOR_METER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Vendor API
    base_url: str = "https://cursor.com"
    session_cookie: str = "WorkosCursorSessionToken"
    origin: str = "https://cursor.com"
    billing_referer: str = "https://cursor.com/dashboard?tab=billing"
    usage_referer: str = "https://cursor.com/dashboard?tab=usage"
    request_timeout: float | None = None  # None = transport default (no timeout)

    # Refresh cadence (seconds)
    refresh_interval_s: int = 30 * 60
    debounce_s: float = 2.0
    event_delay_s: float = 3.0
    event_cache_ttl_s: float = 5 * 60
    event_window_days: int = 7

    # Secret storage
    secrets_path: Path = CONFIG_DIR / "secrets.json"

    # Logging
    log_level: str = "INFO"
    log_file: str = ""  # empty = stderr


settings = Settings()
