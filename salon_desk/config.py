from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Salon Desk")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5500",
            "http://127.0.0.1:5500",
        ]
    )
    database_url: str = Field(
        default="sqlite:///salon.db"
    )
    sql_echo: bool = Field(
        default=False
    )
    default_gst_rate: float = Field(
        default=0.0, ge=0, allow_inf_nan=False
    )
    default_loyalty_rate: float = Field(
        default=0.0, ge=0, allow_inf_nan=False
    )

    model_config = SettingsConfigDict(env_prefix="SALON_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
