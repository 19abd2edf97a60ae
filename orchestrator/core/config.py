"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = Field(default="Dialogue Orchestrator", description="Human-readable service name.")
    environment: str = Field(default="local", description="Deployment environment identifier.")
    log_level: str = Field(default="INFO", description="Application log level.")

    default_domain: str | None = Field(
        default="banking",
        description="Domain activated at startup. Leave empty to start without an active domain.",
    )
    preload_domains: List[str] = Field(
        default_factory=lambda: ["banking", "appointments", "healthcare"],
        description="Built-in domain documents loaded at startup.",
    )
    domain_paths: List[Path] = Field(
        default_factory=list,
        description="Extra JSON/YAML domain documents loaded at startup.",
    )

    nlu_backend: Literal["pattern", "llm"] = Field(
        default="pattern",
        description="Classification/extraction backend. 'llm' requires an OpenRouter key.",
    )
    openrouter_api_key: str | None = Field(
        default=None,
        description="Optional OpenRouter API key for hosted-model classification and extraction.",
    )
    openrouter_model: str = Field(
        default="openai/gpt-3.5-turbo",
        description="OpenRouter model identifier.",
    )
    openrouter_base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter API base URL.",
    )
    openrouter_referer: str | None = Field(
        default=None,
        description="Referer header required by OpenRouter (your app URL).",
    )
    openrouter_title: str | None = Field(
        default="Dialogue Orchestrator",
        description="Title header sent to OpenRouter.",
    )
    openrouter_rate_limit_per_sec: float = Field(
        default=0.0,
        ge=0.0,
        description="Minimum interval (seconds) between OpenRouter API calls. 0 disables throttling.",
    )
    default_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    default_max_tokens: int = Field(default=200, ge=1)

    capability_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout around each classification or extraction call.",
    )
    session_max_age_minutes: float = Field(
        default=60.0,
        gt=0,
        description="Idle sessions older than this are evicted by the cleanup task.",
    )
    session_cleanup_interval_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Interval of the background session cleanup. 0 disables it.",
    )

    rate_limit_enabled: bool = Field(default=False, description="Enable the in-memory rate limiter.")
    rate_limit_per_minute: int = Field(default=60, ge=1)
    rate_limit_burst_per_second: int = Field(default=5, ge=1)
    rate_limit_include_paths: List[str] = Field(
        default_factory=lambda: ["/chat"],
        description="Paths the limiter applies to. Supports a trailing '/*' wildcard.",
    )

    frontend_origin: AnyHttpUrl | None = Field(
        default=None,
        description="Allowed frontend origin (CORS). If omitted, defaults to localhost dev server.",
    )
    additional_origins: List[AnyHttpUrl] = Field(
        default_factory=list,
        description="Additional allowed CORS origins for multi-client deployments.",
    )

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins, de-duplicated in declaration order."""

        if self.frontend_origin:
            origins = [str(self.frontend_origin)]
        else:
            origins = ["http://localhost:5173", "http://127.0.0.1:5173"]
        origins.extend(str(origin) for origin in self.additional_origins)
        return list(dict.fromkeys(origin.rstrip("/") for origin in origins))

    @property
    def llm_enabled(self) -> bool:
        return self.nlu_backend == "llm" and bool(self.openrouter_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
