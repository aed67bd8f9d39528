"""
Runtime configuration, read from environment variables and an optional .env.

A missing provider key is not an error: the corresponding adapter is built
in its always-fallback variant instead.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Jaipur, India
DEFAULT_FALLBACK_LATITUDE = 26.9124
DEFAULT_FALLBACK_LONGITUDE = 75.7873


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    opencage_api_key: Optional[str] = Field(default=None, validation_alias="OPENCAGE_API_KEY")
    weather_api_key: Optional[str] = Field(default=None, validation_alias="WEATHER_API_KEY")
    gemini_api_key: Optional[str] = Field(default=None, validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", validation_alias="GEMINI_MODEL")

    fallback_latitude: float = Field(
        default=DEFAULT_FALLBACK_LATITUDE, validation_alias="FALLBACK_LATITUDE"
    )
    fallback_longitude: float = Field(
        default=DEFAULT_FALLBACK_LONGITUDE, validation_alias="FALLBACK_LONGITUDE"
    )
    http_timeout_seconds: float = Field(default=10.0, validation_alias="HTTP_TIMEOUT_SECONDS")

    user_db_path: Optional[str] = Field(default=None, validation_alias="USER_DB_PATH")
    log_path: Optional[str] = Field(default=None, validation_alias="LOG_PATH")

    def secrets(self):
        return [self.opencage_api_key, self.weather_api_key, self.gemini_api_key]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
