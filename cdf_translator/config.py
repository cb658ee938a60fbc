"""Configuration management for the CDF to Keptn translator."""

from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8081)
    log_level: str = Field(default="INFO")

    # Keptn API
    keptn_endpoint: str = Field(default="http://localhost:8080/api/")
    keptn_api_token: str = Field(default="")
    send_timeout: float = Field(default=30.0)

    # Emitted events
    keptn_project: str = Field(default="cde")
    keptn_stage: str = Field(default="production")
    event_source: str = Field(default="keptn-cdf-translator")
    fallback_service_name: str = Field(default="poc")
    target_url_pattern: str = Field(default="http://{service}-127.0.0.1.nip.io")

    # Routes configuration
    routes_config: str = Field(default="routes.yaml")

    @field_validator("keptn_endpoint")
    @classmethod
    def _valid_endpoint(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"KEPTN_ENDPOINT is not a valid http(s) URL: {value!r}")
        return value

    @field_validator("target_url_pattern")
    @classmethod
    def _valid_pattern(cls, value: str) -> str:
        if "{service}" not in value:
            raise ValueError("TARGET_URL_PATTERN must contain a {service} placeholder")
        try:
            value.format(service="service")
        except (KeyError, IndexError, AttributeError, ValueError) as e:
            raise ValueError(f"TARGET_URL_PATTERN can only use the {{service}} placeholder: {e!r}") from e
        return value

    @property
    def routes_config_path(self) -> Path:
        return Path(self.routes_config)

    @property
    def masked_api_token(self) -> str:
        if not self.keptn_api_token:
            return "<unset>"
        return f"{self.keptn_api_token[:4]}***"


@lru_cache
def get_settings() -> Settings:
    return Settings()
