import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, cast

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from onlibrary.db.session import normalize_database_url

_ENV_FILE = Path(__file__).parent.parent / ".env"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=_ENV_FILE, extra="ignore")

    DATABASE_URL: str
    JWT_SECRET: str
    JWT_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7, gt=0)
    # Raw env string reaches parse_cors_origins; both JSON and comma lists are accepted.
    CORS_ORIGINS: Annotated[list[str], NoDecode]
    PAGE_SIZE: int = Field(default=50, ge=1, le=500)
    TAG_BATCH_MAX_WORKERS: int = Field(default=8, ge=1, le=64)
    LOOKUP_TIMEOUT_SECONDS: float = Field(default=8.0, gt=0)
    LOOKUP_CACHE_TTL_SECONDS: float = Field(default=1800, gt=0)
    MIRROR_IDLE_SECONDS: float = Field(default=900, gt=0)
    GOOGLE_BOOKS_API_KEY: str | None = None
    LOG_LEVEL: str = "INFO"
    DEMO_MODE_ENABLED: bool = True

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                raise ValueError("CORS_ORIGINS cannot be empty.")
            try:
                value = json.loads(raw) if raw.startswith("[") else raw.split(",")
            except json.JSONDecodeError:
                value = raw.split(",")

        if not isinstance(value, list):
            raise ValueError("CORS_ORIGINS must be a list or comma-separated string.")

        origins: list[str] = []
        for origin in value:
            if not isinstance(origin, str):
                raise ValueError("CORS_ORIGINS entries must be strings.")
            origin = origin.strip().strip('[]"\'').rstrip("/")
            if origin and origin not in origins:
                origins.append(origin)

        if not origins:
            raise ValueError("CORS_ORIGINS must include at least one origin.")
        return origins

    @field_validator("JWT_SECRET")
    @classmethod
    def validate_jwt_secret(cls, value: str) -> str:
        if len(value.encode("utf-8")) < 32:
            raise ValueError("JWT_SECRET must be at least 32 bytes for HS256.")
        return value

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_db_url(cls, value: str) -> str:
        return normalize_database_url(value.strip())

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown LOG_LEVEL {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


class _LazySettings:
    def __getattr__(self, item: str) -> Any:
        return getattr(get_settings(), item)


settings = cast(Settings, _LazySettings())
