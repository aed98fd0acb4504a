"""Configuration for the FastAPI application."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API Configuration
    api_prefix: str = "/api/v1"
    api_title: str = "snap-reindexer API"
    api_version: str = "1.0.0"

    # Largest prime request accepted in one call
    max_prime_count: int = 64


settings = Settings()
