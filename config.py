"""
Runtime settings read from environment variables and an optional .env file.
"""
import logging
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("booking_api")

# Development fallback only. Set ADMIN_KEY in every real deployment.
DEFAULT_ADMIN_KEY = "sarayoga2026"
DEFAULT_MAX_SPOTS = 12
DEFAULT_NAMESPACE = "bookings"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    admin_key: str = Field(DEFAULT_ADMIN_KEY, validation_alias="ADMIN_KEY")
    store_backend: str = Field("file", validation_alias="BOOKING_STORE")
    store_dir: Path = Field(Path("data"), validation_alias="BOOKING_STORE_DIR")
    namespace: str = Field(DEFAULT_NAMESPACE, validation_alias="BOOKING_NAMESPACE")
    default_max_spots: int = Field(DEFAULT_MAX_SPOTS, validation_alias="DEFAULT_MAX_SPOTS")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    @field_validator("admin_key", mode="before")
    @classmethod
    def fallback_admin_key(cls, v):
        # An empty ADMIN_KEY counts as unset.
        return v or DEFAULT_ADMIN_KEY

    @field_validator("store_backend")
    @classmethod
    def lower_backend(cls, v: str) -> str:
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def warn_on_default_admin_key(self):
        if self.uses_default_admin_key:
            logger.warning("ADMIN_KEY is not set; using the built-in development key. Do not run this in production.")
        return self

    @property
    def uses_default_admin_key(self) -> bool:
        return self.admin_key == DEFAULT_ADMIN_KEY


def load_settings() -> Settings:
    return Settings()
