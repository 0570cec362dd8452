"""Locator configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger, mask_url
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the classifier and the location resolver."""
    model_config = SettingsConfigDict(env_prefix="LOCATOR_", extra="ignore")

    # oracle (LLM) endpoints
    open_webui_url: str | None = None
    ollama_base_url: str = "http://localhost:11434"
    oracle_model: str = "tinyllama"
    oracle_request_timeout_seconds: float = 10.0
    oracle_timeout_seconds: float = 25.0  # enforced by the classifier around both endpoints
    oracle_retries: int = 0

    # positioning tiers
    precise_timeout_seconds: float = 10.0
    approximate_timeout_seconds: float = 5.0
    network_timeout_seconds: float = 5.0
    ip_geolocation_url: str = "https://ipapi.co/json/"
    fallback_city: str = "jakarta"

    # caching
    cache_ttl_seconds: int = 300
    durable_cache_ttl_seconds: int = 1800
    location_redis_url: str | None = None
    location_cache_key: str = "lastKnownLocation"

    @field_validator("open_webui_url", "ollama_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        """Normalize base URLs to avoid double slashes."""
        if v is None:
            return v
        return str(v).rstrip("/")

    @field_validator("fallback_city", mode="after")
    @classmethod
    def lower_city(cls, v: str) -> str:
        return v.strip().lower()


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    dumped = settings.model_dump()
    for key in ("open_webui_url", "ollama_base_url", "location_redis_url"):
        dumped[key] = mask_url(dumped[key])
    logger.debug(f"Loaded settings: {dumped}")
