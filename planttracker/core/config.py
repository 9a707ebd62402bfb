"""PlantTracker configuration using Pydantic Settings."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database (Remote Store)
    database_url: str = "sqlite:///./planttracker.db"

    # Remote Store client
    api_base_url: str = "http://localhost:8000"
    api_token: str = ""
    http_timeout_seconds: float = 10.0

    # Client-local state
    data_dir: Path = Path.home() / ".planttracker"
    garden_cache_file: str = "garden_cache.json"
    preferences_file: str = "preferences.json"

    # Hardiness zone lookup
    zone_api_base: str = "https://phzmapi.org"
    zone_cache_days: int = 30

    # Photos
    max_photo_bytes: int = 5 * 1024 * 1024

    # Reminders
    reminder_default_hour: int = 9
    reminder_default_minute: int = 0

    # Notification
    notification_enabled: bool = True
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # General
    timezone: str = "UTC"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = {
        "env_file": ".env",
        "env_prefix": "PLANTTRACKER_",
        "extra": "ignore",
    }

    @property
    def garden_cache_path(self) -> Path:
        return self.data_dir / self.garden_cache_file

    @property
    def preferences_path(self) -> Path:
        return self.data_dir / self.preferences_file


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
