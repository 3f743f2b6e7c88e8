"""Configuration settings for the application."""
import os
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent
ROOT_DIR = BASE_DIR.parent.parent

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=str((ROOT_DIR / ".env").resolve()),
        case_sensitive=False,
        extra="ignore",
    )

    # API configuration
    api_version: str = "v1"
    debug: bool = os.getenv("DEBUG", "False").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Server configuration (read by run_backend.py)
    backend_host: str = "0.0.0.0"
    backend_port: int = Field(default=8000, ge=1, le=65535)
    backend_reload: bool = True

    # CORS configuration
    cors_origins: List[str] = Field(default_factory=lambda: DEFAULT_CORS_ORIGINS.copy())
    cors_allow_all: bool = Field(default=False)

    # Financial projection defaults
    default_pilot_cost: float = Field(
        default=50000,
        gt=0,
        description="Pilot cost used when a request does not supply one"
    )
    projection_years: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Number of years covered by annual value projections"
    )
    customer_life_years: int = Field(
        default=5,
        ge=1,
        le=30,
        description="Average customer lifetime reported alongside CLV"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
