# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: the origin the
worker talks to, the versioned namespace names, the precache and API route
lists, the cache backend and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from flyola_offline.worker.config import WorkerConfig


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Origin ===
    origin: str = "https://flyola.in"
    fetch_timeout_s: float | None = None

    # === Worker ===
    # Bumping a name invalidates that namespace on the next activation.
    static_cache_name: str = "flyola-cache-v1"
    api_cache_name: str = "flyola-api-cache-v1"
    precache_urls: str = "/,/logoo-04.png,/manifest.json"
    api_path_fragments: str = "/airport"
    revalidation: Literal["last_write_wins", "single_flight"] = "last_write_wins"

    # === Cache ===
    cache_backend: Literal["memory", "json", "sqlite", "redis"] = "memory"
    cache_root: Path = Path("~/.flyola/cache")
    cache_redis_url: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("origin")
    @classmethod
    def validate_origin(cls, v: str) -> str:  # noqa: N805
        """Origin must be an absolute http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("origin must start with http:// or https://")
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.static_cache_name == self.api_cache_name:
            errors.append("STATIC_CACHE_NAME and API_CACHE_NAME must differ")

        if not self.precache_urls_list:
            errors.append("PRECACHE_URLS must list at least one URL")

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if self.fetch_timeout_s is not None and self.fetch_timeout_s <= 0:
            errors.append("FETCH_TIMEOUT_S must be positive")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def precache_urls_list(self) -> list[str]:
        """Parse comma-separated precache URLs."""
        return [u.strip() for u in self.precache_urls.split(",") if u.strip()]

    @property
    def api_path_fragments_list(self) -> list[str]:
        """Parse comma-separated API path fragments."""
        return [f.strip() for f in self.api_path_fragments.split(",") if f.strip()]

    def worker_config(self) -> WorkerConfig:
        """Build the explicit worker configuration from these settings."""
        from flyola_offline.worker.config import WorkerConfig

        return WorkerConfig(
            origin=self.origin,
            static_cache_name=self.static_cache_name,
            api_cache_name=self.api_cache_name,
            precache_urls=self.precache_urls_list,
            api_path_fragments=self.api_path_fragments_list,
            revalidation=self.revalidation,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or the CLI).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
