"""
Suite configuration management using Pydantic Settings.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FIXTURES_DIR = Path(__file__).parent / "fixtures"


class Settings(BaseSettings):
    """Suite settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Target storefront
    base_url: str = "https://www.saucedemo.com"
    default_password: str = Field(default="secret_sauce")

    # Timeouts (milliseconds)
    command_timeout: int = 5000
    navigation_timeout: int = 10000
    auth_timeout: int = 15000  # login can be slow for the performance user
    probe_timeout: int = 8000
    slow_user_timeout: int = 30000
    type_delay: int = 50

    # Playwright
    playwright_browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    playwright_headless: bool = True
    playwright_slow_mo: int = 0

    # Fixtures
    fixtures_dir: Path = DEFAULT_FIXTURES_DIR

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
