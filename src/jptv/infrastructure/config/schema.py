"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional
from urllib.parse import urlparse

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _require_http_url(value: str, field_name: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"{field_name} must be an absolute http(s) URL")
    return value.rstrip("/")


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (site/flaresolverr/http/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < overrides) in load.py.
    """

    # General
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Scraped site (YAML section: site.*)
    site_base_url: str = Field(
        default="https://9tsu.cc",
        validation_alias=AliasChoices(
            "site_base_url",
            AliasPath("site", "base_url"),
        ),
        description="Origin of the protected listing site.",
    )
    site_category: str = Field(
        default="douga",
        validation_alias=AliasChoices(
            "site_category",
            AliasPath("site", "category"),
        ),
        description="WordPress category slug whose posts are listed.",
    )

    # FlareSolverr (YAML section: flaresolverr.*)
    flaresolverr_url: str = Field(
        default="http://localhost:8191/v1",
        validation_alias=AliasChoices(
            "flaresolverr_url",
            AliasPath("flaresolverr", "url"),
        ),
        description="FlareSolverr request endpoint (the /v1 URL).",
    )
    flaresolverr_client_timeout_seconds: float = Field(
        default=120.0,
        validation_alias=AliasChoices(
            "flaresolverr_client_timeout_seconds",
            AliasPath("flaresolverr", "client_timeout_seconds"),
        ),
        description="HTTP timeout for calls to FlareSolverr (browser automation is slow).",
    )
    flaresolverr_max_timeout_ms: int = Field(
        default=60_000,
        validation_alias=AliasChoices(
            "flaresolverr_max_timeout_ms",
            AliasPath("flaresolverr", "max_timeout_ms"),
        ),
        description="maxTimeout passed to FlareSolverr commands (milliseconds).",
    )

    # HTTP (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="HTTP timeout in seconds for direct and listing requests.",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
        ),
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for unauthenticated requests to the site.",
    )
    http_accept_language: str = Field(
        default="ja,en-US;q=0.9,en;q=0.8",
        validation_alias=AliasChoices(
            "http_accept_language",
            AliasPath("http", "accept_language"),
        ),
        description="Accept-Language header favouring the source content's language.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("site_base_url")
    @classmethod
    def _validate_site_base_url(cls, v: str) -> str:
        return _require_http_url(v, "site_base_url")

    @field_validator("flaresolverr_url")
    @classmethod
    def _validate_flaresolverr_url(cls, v: str) -> str:
        return _require_http_url(v, "flaresolverr_url")

    @field_validator("site_category")
    @classmethod
    def _validate_category(cls, v: str) -> str:
        v = v.strip("/")
        if not v:
            raise ValueError("site_category must not be empty")
        return v

    @field_validator("http_timeout_seconds", "flaresolverr_client_timeout_seconds")
    @classmethod
    def _validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("flaresolverr_max_timeout_ms")
    @classmethod
    def _validate_max_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("flaresolverr_max_timeout_ms must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "environment": self.environment,
            "site": {
                "base_url": self.site_base_url,
                "category": self.site_category,
            },
            "flaresolverr": {
                "url": self.flaresolverr_url,
                "client_timeout_seconds": self.flaresolverr_client_timeout_seconds,
                "max_timeout_ms": self.flaresolverr_max_timeout_ms,
            },
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "user_agent": self.http_user_agent,
                "accept_language": self.http_accept_language,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Supported env var examples (flat, explicit):
    - JPTV_FLARESOLVERR_URL
    - JPTV_SITE_BASE_URL
    - JPTV_HTTP_TIMEOUT_SECONDS
    - JPTV_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="JPTV_",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Optional[Environment] = None

    site_base_url: Optional[str] = None
    site_category: Optional[str] = None

    flaresolverr_url: Optional[str] = None
    flaresolverr_client_timeout_seconds: Optional[float] = None
    flaresolverr_max_timeout_ms: Optional[int] = None

    http_timeout_seconds: Optional[float] = None
    http_user_agent: Optional[str] = None
    http_accept_language: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
