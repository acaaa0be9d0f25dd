from __future__ import annotations

from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .urls import DEFAULT_CODE_SEARCH_URL


def _env(name: str, *legacy: str) -> AliasChoices:
    return AliasChoices(f"VULN_INGEST_{name}", *legacy)


class AppConfig(BaseSettings):
    """Application configuration with automatic environment variable loading.

    Every setting reads ``VULN_INGEST_<FIELD>``; the variable names used by the
    original deployment (``GITHUB_API_TOKEN``, ``MAX_RETRIES``, ``DB_HOST``...) are
    accepted as well. A ``.env`` file in the working directory is honoured.
    For example:
        - VULN_INGEST_GITHUB_TOKEN=ghp_xxx
        - VULN_INGEST_CONCURRENCY=5
        - DB_HOST=postgres

    Alternatively, settings can be provided programmatically when creating the Container:
        container = Container()
        container.config.from_pydantic(AppConfig(github_token="ghp_xxx"))
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    search_url: str = Field(
        default=DEFAULT_CODE_SEARCH_URL,
        validation_alias=_env("SEARCH_URL", "GITHUB_API"),
        description="Code search endpoint",
    )

    github_token: Optional[str] = Field(
        default=None,
        validation_alias=_env("GITHUB_TOKEN", "GITHUB_API_TOKEN"),
        description="GitHub token used for search and file download; required to run a scan",
    )

    max_retries: int = Field(
        default=2,
        ge=0,
        validation_alias=_env("MAX_RETRIES", "MAX_RETRIES"),
        description="Retries after the first attempt of every search/download request",
    )

    concurrency: int = Field(
        default=3,
        ge=1,
        validation_alias=_env("CONCURRENCY", "CONCURRENCY"),
        description="Maximum number of files processed at the same time",
    )

    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=_env("REQUEST_TIMEOUT_SECONDS"),
        description="Timeout of a single HTTP attempt",
    )

    backoff_seconds: float = Field(
        default=1.0,
        ge=0,
        validation_alias=_env("BACKOFF_SECONDS"),
        description="Linear backoff unit: retry N waits N * backoff_seconds",
    )

    storage_backend: Literal["postgres", "memory"] = Field(
        default="postgres",
        validation_alias=_env("STORAGE_BACKEND"),
    )

    db_host: str = Field(default="localhost", validation_alias=_env("DB_HOST", "DB_HOST"))
    db_port: int = Field(default=5432, validation_alias=_env("DB_PORT", "DB_PORT"))
    db_user: str = Field(default="postgres", validation_alias=_env("DB_USER", "DB_USER"))
    db_password: str = Field(default="postgres", validation_alias=_env("DB_PASSWORD", "DB_PASSWORD"))
    db_name: str = Field(default="vulnerabilities", validation_alias=_env("DB_NAME", "DB_NAME"))
    db_pool_size: int = Field(default=4, ge=1, validation_alias=_env("DB_POOL_SIZE"))
