"""Onlibrary FastAPI application.

Run with:
    uvicorn apps.api.main:app --reload

Production-friendly entrypoint (uses PORT env fallback):
    python -m apps.api.main
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from onlibrary.db.session import is_sqlite_url
from onlibrary.errors import (
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    TagBatchError,
    ValidationError,
)
from onlibrary.metadata import MetadataLookup
from onlibrary.store import MemoryDocumentStore, MirrorRegistry, SqlDocumentStore

from .core.config import settings
from .routers import auth, books, explore, friends, lists, lookup, profile, stats, tags, transfer

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("CORS origins: %s", settings.CORS_ORIGINS)
    logger.info("Demo mode %s", "enabled" if settings.DEMO_MODE_ENABLED else "disabled")
    yield
    app.state.mirrors.close_all()
    app.state.store.close()


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"field": exc.field, "message": exc.message},
        )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied(request: Request, exc: PermissionDeniedError):
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @app.exception_handler(TagBatchError)
    async def tag_batch_failed(request: Request, exc: TagBatchError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "detail": str(exc),
                "operation": exc.operation,
                "committed": exc.committed,
                "attempted": exc.attempted,
            },
        )

    @app.exception_handler(PersistenceError)
    async def persistence_failed(request: Request, exc: PersistenceError):
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


def create_app(
    store: SqlDocumentStore | None = None,
    lookup_service: MetadataLookup | None = None,
    demo_store: MemoryDocumentStore | None = None,
) -> FastAPI:
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title="Onlibrary API", version="0.1.0", lifespan=lifespan)
    app.state.store = store or SqlDocumentStore.from_url(
        settings.DATABASE_URL, create_tables=is_sqlite_url(settings.DATABASE_URL)
    )
    app.state.demo_store = demo_store or MemoryDocumentStore.demo()
    app.state.mirrors = MirrorRegistry(idle_seconds=settings.MIRROR_IDLE_SECONDS)
    app.state.lookup = lookup_service or MetadataLookup.from_settings(
        timeout=settings.LOOKUP_TIMEOUT_SECONDS,
        cache_ttl=settings.LOOKUP_CACHE_TTL_SECONDS,
        google_api_key=settings.GOOGLE_BOOKS_API_KEY,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    for module in (auth, books, tags, lists, stats, profile, friends, explore, lookup, transfer):
        app.include_router(module.router)

    @app.get("/")
    def health_check():
        return {"status": "ok", "service": "Onlibrary API"}

    return app


app = create_app()


def _get_cli_arg(argv: list[str], flag: str) -> str | None:
    for i, arg in enumerate(argv):
        if arg == flag and i + 1 < len(argv):
            return argv[i + 1]
        if arg.startswith(f"{flag}="):
            return arg.split("=", 1)[1]
    return None


def _resolve_port(argv: list[str]) -> int:
    cli_port = _get_cli_arg(argv, "--port")
    if cli_port is not None:
        return int(cli_port)

    env_port = os.getenv("PORT")
    if env_port:
        return int(env_port)

    return 8000


def _resolve_host(argv: list[str]) -> str:
    cli_host = _get_cli_arg(argv, "--host")
    if cli_host is not None:
        return cli_host
    return os.getenv("HOST", "0.0.0.0")


if __name__ == "__main__":
    import uvicorn

    args = sys.argv[1:]
    uvicorn.run(
        "apps.api.main:app",
        host=_resolve_host(args),
        port=_resolve_port(args),
        reload="--reload" in args,
    )
