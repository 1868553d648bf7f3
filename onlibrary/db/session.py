import os
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Resolve .env relative to this file so it works regardless of CWD.
# Searches: <repo_root>/apps/api/.env, then <repo_root>/.env, then CWD/.env.
_repo_root = Path(__file__).resolve().parents[2]
for _candidate in [
    _repo_root / "apps" / "api" / ".env",
    _repo_root / ".env",
]:
    if _candidate.exists():
        load_dotenv(_candidate)
        break
else:
    load_dotenv()  # fallback to CWD

DEFAULT_DATABASE_URL = "sqlite:///onlibrary.db"


def normalize_database_url(url: str) -> str:
    """Force psycopg v3 driver so SQLAlchemy does not try psycopg2."""
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql+psycopg2://"):
        return "postgresql+psycopg://" + url[len("postgresql+psycopg2://") :]
    return url


def build_database_url() -> str:
    direct = os.getenv("DATABASE_URL")
    if direct:
        return normalize_database_url(direct)

    host = os.getenv("DATABASE_HOST")
    if not host:
        return DEFAULT_DATABASE_URL
    user = os.getenv("DATABASE_USER", "app_user")
    password = os.getenv("DATABASE_PW", "app_pw")
    name = os.getenv("DATABASE_NAME", "app_db")
    port = os.getenv("DATABASE_PORT", "5432")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{name}"


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def make_engine(url: str) -> Engine:
    url = normalize_database_url(url)
    if is_sqlite_url(url):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every checkout sees an empty database.
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)
    return create_engine(
        url,
        future=True,
        pool_pre_ping=True,
        connect_args={
            "keepalives": 1,
            "keepalives_idle": 10,
            "keepalives_interval": 5,
            "keepalives_count": 5,
            "connect_timeout": 30,
        },
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)

