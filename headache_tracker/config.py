"""
Application settings, read from the environment (or a .env file).
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Remote Headache API
    API_BASE_URL: str = Field(
        default="http://localhost:3001",
        description="Base URL of the Headache API (auth, headache records, weather)",
    )
    API_TIMEOUT: Optional[float] = Field(
        default=None,
        description="Seconds before an API call is abandoned (None = wait indefinitely)",
    )

    # Local credential store
    DATABASE_URL: str = Field(default="sqlite:///headache_tracker.db")
    SESSION_COOKIE: str = Field(default="sid")

    # Reverse geocoding
    REVERSE_GEOCODE_URL: str = Field(
        default="https://api.bigdatacloud.net/data/reverse-geocode-client",
    )
    NOMINATIM_REVERSE_URL: str = Field(
        default="https://nominatim.openstreetmap.org/reverse",
    )
    GEOCODER_TIMEOUT: float = Field(default=8.0)

    # Dashboard
    RECORDS_PAGE_SIZE: int = Field(default=10)
    HOURLY_SLICE_SIZE: int = Field(default=24)

    LOG_LEVEL: str = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    return Settings()
