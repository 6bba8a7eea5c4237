"""
DockDock - Configuration and settings.

Settings contains what the onboarding wizard and its collaborator client need.
Values come from the environment or a local .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings.

    The API token is only used by the CLI; web requests forward the
    caller's own bearer token to the backend.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # DockDock REST backend
    dockdock_api_base_url: str = "http://localhost:3000"
    dockdock_api_token: str | None = None
    request_timeout_seconds: float = 10.0

    # Wizard behaviour
    genre_book_limit: int = 5
    analyzing_delay_seconds: float = 2.0

    # Web UI origins allowed by CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Application
    dockdock_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def is_development(self) -> bool:
        return self.dockdock_env == "development"

    @property
    def is_production(self) -> bool:
        return self.dockdock_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience singleton - lazy loaded
class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
