import pytest
from pydantic import ValidationError

from apps.api.core.config import Settings


def _build_settings(**overrides: object) -> Settings:
    values = {
        "DATABASE_URL": "postgresql+psycopg://user:pw@localhost:5432/db",
        "JWT_SECRET": "a" * 32,
        "JWT_EXPIRE_MINUTES": 60,
        "CORS_ORIGINS": "http://localhost:5173",
    }
    values.update(overrides)
    return Settings.model_validate(values)


def test_cors_origins_normalizes_json_and_trailing_slash():
    settings = _build_settings(CORS_ORIGINS='["https://onlibrary.example.com/","http://localhost:5173"]')

    assert settings.CORS_ORIGINS == [
        "https://onlibrary.example.com",
        "http://localhost:5173",
    ]


def test_cors_origins_accepts_comma_separated_values():
    settings = _build_settings(CORS_ORIGINS="https://onlibrary.example.com/, http://localhost:5173 ")

    assert settings.CORS_ORIGINS == [
        "https://onlibrary.example.com",
        "http://localhost:5173",
    ]


def test_cors_origins_drops_duplicates():
    settings = _build_settings(CORS_ORIGINS="http://a.test,http://a.test/")
    assert settings.CORS_ORIGINS == ["http://a.test"]


def test_database_url_forces_psycopg_driver():
    settings = _build_settings(DATABASE_URL="postgres://user:pw@db:5432/onlibrary")
    assert settings.DATABASE_URL == "postgresql+psycopg://user:pw@db:5432/onlibrary"


def test_sqlite_url_is_untouched():
    assert _build_settings(DATABASE_URL="sqlite:///onlibrary.db").DATABASE_URL == "sqlite:///onlibrary.db"


def test_short_jwt_secret_is_rejected():
    with pytest.raises(ValidationError, match="32 bytes"):
        _build_settings(JWT_SECRET="short")


def test_log_level_is_upper_cased():
    assert _build_settings(LOG_LEVEL=" debug ").LOG_LEVEL == "DEBUG"


def test_unknown_log_level_is_rejected():
    with pytest.raises(ValidationError):
        _build_settings(LOG_LEVEL="chatty")


def test_defaults():
    settings = _build_settings()
    assert settings.PAGE_SIZE == 50
    assert settings.MIRROR_IDLE_SECONDS == 900
    assert settings.TAG_BATCH_MAX_WORKERS >= 1
    assert settings.DEMO_MODE_ENABLED is True
