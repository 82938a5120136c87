"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a cached `load_settings()` that reads from:
- Real environment variables (highest precedence)
- `.env` files at the working directory: .env, .env.local, .env.dev/.env.test/.env.prod

Everything the write path needs (store location, credentials, retry budget,
cache lifetime, owner token) is read here once and handed to the components
explicitly; nothing below this module consults `os.environ` mid-operation.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
StoreBackend = Literal["github", "memory"]


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `ANNALS_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    store_backend : StoreBackend
        Which document store to build; maps from `ANNALS_STORE`.
    github_token : SecretStr | None
        Token used against the GitHub Contents API; maps from `GITHUB_TOKEN`.
    github_owner, github_repo : str | None
        Repository holding the data file.
    github_branch : str | None
        Optional branch; the repository default branch when unset.
    data_path : str
        Path of the JSON document inside the repository.
    owner_token : SecretStr | None
        Bearer token that grants the owner capability over HTTP.
    max_retries : int
        Conflict retries after the first attempt.
    retry_base_delay_seconds : float
        Linear backoff unit between conflict retries.
    retry_deadline_seconds : float | None
        Total wall-clock budget across retries; unset disables the cut-off.
    cache_ttl_seconds : float
        Lifetime of the public read cache.
    """

    environment: EnvName = Field(default="dev", alias="ANNALS_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    store_backend: StoreBackend = Field(default="github", alias="ANNALS_STORE")
    github_token: SecretStr | None = Field(default=None, alias="GITHUB_TOKEN")
    github_owner: str | None = Field(default=None, alias="GITHUB_OWNER")
    github_repo: str | None = Field(default=None, alias="GITHUB_REPO")
    github_branch: str | None = Field(default=None, alias="GITHUB_BRANCH")
    github_api_url: str = Field(default="https://api.github.com", alias="GITHUB_API_URL")
    data_path: str = Field(default="data/events.json", alias="ANNALS_DATA_PATH")
    http_timeout_seconds: float = Field(default=10.0, gt=0, alias="ANNALS_HTTP_TIMEOUT_SECONDS")

    owner_token: SecretStr | None = Field(default=None, alias="ANNALS_OWNER_TOKEN")

    max_retries: int = Field(default=3, ge=0, alias="ANNALS_MAX_RETRIES")
    retry_base_delay_seconds: float = Field(
        default=0.2, ge=0, alias="ANNALS_RETRY_BASE_DELAY_SECONDS"
    )
    retry_deadline_seconds: float | None = Field(
        default=5.0, gt=0, alias="ANNALS_RETRY_DEADLINE_SECONDS"
    )
    cache_ttl_seconds: float = Field(default=60.0, ge=0, alias="ANNALS_CACHE_TTL_SECONDS")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Kept behind an LRU cache so tests can force a rebuild via
    `load_settings.cache_clear()` after mutating `os.environ`.
    """
    os.environ.setdefault("ANNALS_ENV", "dev")
    return Settings()


def get_logger(name: str = "annals") -> logging.Logger:
    """Return a process-global logger configured to the current log level."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger


__all__ = ["Settings", "get_logger", "load_settings"]
