from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Fire Extinguisher Tracker"
    APP_ENV: str = "dev"

    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    DATA_DIR: Path = Field(default_factory=lambda: Path.cwd() / "data")
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    TZ: str = "UTC"

    # ``memory`` is volatile, ``keyvalue`` and ``database`` survive restarts.
    STORAGE_BACKEND: Literal["memory", "keyvalue", "database"] = "database"
    DB_URL: str = Field(default="", validation_alias="DATABASE_URL")
    KV_PATH: Path | None = None
    KV_PREFIX: str = "fe_extinguisher_"

    BATCH_MAX: int = 200
    QR_BOX_SIZE: int = 10

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 8090

    @field_validator("STORAGE_BACKEND", mode="before")
    @classmethod
    def lower_backend(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def templates_dir(self) -> Path:
        return self.TEMPLATES_DIR or self.BASE_DIR / "templates"

    @property
    def static_dir(self) -> Path:
        return self.STATIC_DIR or self.BASE_DIR / "static"

    @property
    def db_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'extinguishers.db'}"

    @property
    def kv_path(self) -> Path:
        return self.KV_PATH or self.DATA_DIR / "extinguishers.json"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.STORAGE_BACKEND != "memory":
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings
