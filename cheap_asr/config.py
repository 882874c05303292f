from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from cheap_asr.api_client import DEFAULT_API_BASE_URL


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHEAP_ASR_", env_file=".env", extra="ignore")

    # Remote API
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout_s: float = 30.0

    # Callbacks
    public_base_url: str = "http://localhost:8000"
    callback_ttl_seconds: float = 24 * 60 * 60

    # Service
    service_name: str = "cheap-asr"
    environment: str = "local"
    log_level: str = "INFO"
    port: int = 8000


settings = Settings()
