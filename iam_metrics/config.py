"""Application configuration loading via Pydantic settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    metrics_backend: Literal["memory", "prometheus"] = Field(default="memory", alias="METRICS_BACKEND")
    realm_lookup: Literal["static", "keycloak"] = Field(default="static", alias="REALM_LOOKUP")
    realm_names: dict[str, str] = Field(default_factory=dict, alias="REALM_NAMES")
    keycloak_base_url: str = Field(default="http://localhost:8080", alias="KEYCLOAK_BASE_URL")
    keycloak_admin_token: str | None = Field(default=None, alias="KEYCLOAK_ADMIN_TOKEN")
    keycloak_timeout_seconds: float = Field(default=5.0, gt=0.0, alias="KEYCLOAK_TIMEOUT_SECONDS")
    realm_lookup_failure: Literal["skip", "raise"] = Field(default="skip", alias="REALM_LOOKUP_FAILURE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
