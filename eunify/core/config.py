"""
Configuration management for the E-Unify graph visualization service.

This module centralizes environment-driven configuration using Pydantic's
`BaseSettings`. All components consume the shared `settings` instance so the
REST client, the view controller and the API agree on endpoints and defaults.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import AnyUrl, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    # General application settings
    API_TITLE: str = "E-Unify Graph API"
    API_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field("development", pattern=r"^(development|staging|production)$")
    API_HOST: str = "0.0.0.0"
    API_PORT: PositiveInt = 8080
    ALLOWED_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Graph REST service
    GRAPH_API_BASE_URL: AnyUrl = Field("http://localhost:5000/api/v1")
    GRAPH_API_PREFIX: str = "/janusgraph"
    # None keeps the HTTP client's own default timeout.
    GRAPH_REQUEST_TIMEOUT_SECONDS: Optional[float] = None
    GRAPH_DEFAULT_LIMIT: PositiveInt = 100

    # Analytic preset parameters
    IMPACT_ANALYSIS_ENTITY_ID: str = "policy-rule-001"
    IMPACT_ANALYSIS_DEPTH: PositiveInt = 3
    FRAUD_MIN_RISK_SCORE: int = Field(70, ge=0, le=100)
    PREDICTIVE_CASE_TYPE: str = "all"

    # Logging / tracing
    LOG_LEVEL: str = Field("INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    OTEL_ENABLED: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: Optional[AnyUrl] = None
    OTEL_EXPORTER_OTLP_HEADERS: Optional[str] = None

    @field_validator("ALLOWED_ORIGINS", mode="before")
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("LOG_LEVEL", mode="before")
    def _upper_level(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value

    @property
    def graph_service_url(self) -> str:
        """Base URL of the graph endpoints, without a trailing slash."""

        return str(self.GRAPH_API_BASE_URL).rstrip("/") + self.GRAPH_API_PREFIX


@lru_cache()
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()


# Singleton-style settings instance for modules that prefer direct access.
settings = get_settings()
