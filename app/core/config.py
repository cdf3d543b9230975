# app/core/config.py
from functools import lru_cache
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SECRET_KEY = "dev-secret-change-me-before-any-deployment"


class Settings(BaseSettings):
    environment: str = "development"
    database_url: str = "sqlite:///./minidrive.db"

    # Signs session credentials; override in every real deployment
    secret_key: str = DEV_SECRET_KEY
    session_ttl_minutes: int = 60

    max_file_size: int = 16 * 1024 * 1024  # per file, bytes
    upload_chunk_size: int = 64 * 1024

    # Base of the URLs handed out for receive links
    public_base_url: str = "http://localhost:8000"
    log_level: str = "INFO"

    # Tell pydantic-settings to load from .env at project root
    model_config = SettingsConfigDict(
        env_prefix="MINIDRIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignore any extra stuff in .env
    )

    @model_validator(mode="after")
    def _require_secret_in_production(self):
        if self.is_production and self.secret_key == DEV_SECRET_KEY:
            raise ValueError("MINIDRIVE_SECRET_KEY must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def receive_url(self, receive_token: str) -> str:
        return f"{self.public_base_url.rstrip('/')}/receive/{receive_token}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
