from __future__ import annotations

from typing import Generator

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from onlibrary.context import ReaderContext, demo_context
from onlibrary.db.crud import UserCRUD
from onlibrary.db.models import User
from onlibrary.metadata import MetadataLookup
from onlibrary.store import DocumentStore, LibraryMirror, SqlDocumentStore

from .auth import decode_token
from .config import settings

bearer_scheme = HTTPBearer(auto_error=False)

DEMO_HEADER = "X-Demo-Mode"


def get_store(request: Request) -> SqlDocumentStore:
    return request.app.state.store


def get_db(store: SqlDocumentStore = Depends(get_store)) -> Generator[Session, None, None]:
    with store.session_factory() as session:
        yield session


def _token_owner_id(credentials: HTTPAuthorizationCredentials) -> str:
    try:
        return decode_token(credentials.credentials)
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def _user_from_token(credentials: HTTPAuthorizationCredentials, db: Session) -> User:
    user = UserCRUD.get_by_id(db, _token_owner_id(credentials))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def _owner_from_token(credentials: HTTPAuthorizationCredentials, store: SqlDocumentStore) -> str:
    # Goes through the store so SQLite reads queue behind writes on the shared connection.
    owner_id = _token_owner_id(credentials)
    if not store.has_owner(owner_id):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return owner_id


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return _user_from_token(credentials, db)


def get_reader_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: SqlDocumentStore = Depends(get_store),
) -> ReaderContext:
    """Signed-in reader from the bearer token, or a demo reader when asked for one."""
    if credentials is not None:
        return ReaderContext(owner_id=_owner_from_token(credentials, store))
    if settings.DEMO_MODE_ENABLED and request.headers.get(DEMO_HEADER, "").strip().lower() in ("1", "true"):
        return demo_context()
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")


def get_reader_store(request: Request, ctx: ReaderContext = Depends(get_reader_context)) -> DocumentStore:
    if ctx.demo:
        return request.app.state.demo_store
    return request.app.state.store


def get_mirror(
    request: Request,
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
) -> LibraryMirror:
    return request.app.state.mirrors.get(store, ctx.owner_id)


def get_lookup(request: Request) -> MetadataLookup:
    return request.app.state.lookup
