"""SQLAlchemy-backed document store.

Every committed write republishes the affected owner's whole collection on
the change feed, so mirrors always hold the authoritative state.
"""

from __future__ import annotations

import contextlib
import logging
import threading
from typing import Callable, Iterator

from sqlalchemy import or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..db import models
from ..db.base import Base
from ..db.crud import (
    BookCRUD,
    BookListCRUD,
    FriendRequestCRUD,
    FriendshipCRUD,
    UserCRUD,
    UserProfileCRUD,
)
from ..db.session import is_sqlite_url, make_engine, make_session_factory
from ..errors import PersistenceError, ValidationError
from ..records import Book, BookList, FriendRequest, Friendship, UserProfile
from .feed import ChangeFeed, Subscription

logger = logging.getLogger(__name__)

_BOOK_FIELDS = ("title", "authors", "isbn", "cover_url", "publisher", "tags", "finished_month", "release_year", "notes")
_LIST_FIELDS = ("name", "cover_url", "book_ids")
_PROFILE_FIELDS = (
    "username",
    "display_name",
    "email",
    "profile_image_url",
    "show_books_to_friends",
    "show_lists_to_friends",
    "private_tag",
    "theme_preference",
)
_REQUEST_FIELDS = ("from_user_id", "from_username", "to_user_id", "to_username", "status")
_FRIENDSHIP_FIELDS = ("user1_id", "user1_username", "user2_id", "user2_username", "created_at")


def _fields(record, names) -> dict:
    return {name: getattr(record, name) for name in names}


def _to_record(record_cls, row):
    return record_cls.model_validate(row, from_attributes=True)


class SqlDocumentStore:
    read_only = False

    def __init__(self, session_factory: sessionmaker, serialize: bool = False, engine: Engine | None = None):
        self.session_factory = session_factory
        self._engine = engine
        self._feed = ChangeFeed()
        # SQLite runs on a single shared connection; every unit of work takes this lock.
        self._lock = threading.RLock() if serialize else contextlib.nullcontext()

    @classmethod
    def from_url(cls, url: str, create_tables: bool = False) -> "SqlDocumentStore":
        engine = make_engine(url)
        if create_tables:
            Base.metadata.create_all(engine)
        return cls(make_session_factory(engine), serialize=is_sqlite_url(url), engine=engine)

    @contextlib.contextmanager
    def _session(self, commit: bool = False) -> Iterator[Session]:
        with self._lock:
            session = self.session_factory()
            try:
                yield session
                if commit:
                    session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Document store operation failed: %s", exc)
                raise PersistenceError(str(exc)) from exc
            except ValueError as exc:
                session.rollback()
                if isinstance(exc, ValidationError):
                    raise
                raise ValidationError("document", str(exc)) from exc
            finally:
                session.close()

    def _read(self, fn):
        with self._session() as session:
            return fn(session)

    def create_tables(self) -> None:
        if self._engine is not None:
            Base.metadata.create_all(self._engine)

    def owner_id_for_email(self, email: str) -> str | None:
        def fetch(session):
            user = UserCRUD.get_by_email(session, email)
            return user.id if user is not None else None

        return self._read(fetch)

    def has_owner(self, owner_id: str) -> bool:
        return self._read(lambda session: UserCRUD.get_by_id(session, owner_id) is not None)

    # books ---------------------------------------------------------------

    def subscribe_books(self, owner_id: str, callback: Callable[[list[Book]], None]) -> Subscription:
        return self._feed.subscribe(("books", owner_id), callback, lambda: self.list_books(owner_id))

    def list_books(self, owner_id: str) -> list[Book]:
        return self._read(lambda s: [_to_record(Book, row) for row in BookCRUD.list_by_owner(s, owner_id)])

    def get_book(self, owner_id: str, book_id: int) -> Book | None:
        def fetch(session):
            row = BookCRUD.get(session, owner_id, book_id)
            return _to_record(Book, row) if row is not None else None

        return self._read(fetch)

    def write_book(self, book: Book) -> Book:
        with self._session(commit=True) as session:
            stored = _to_record(Book, BookCRUD.upsert(session, book.owner_id, book.id, **_fields(book, _BOOK_FIELDS)))
        self._publish_books(book.owner_id)
        return stored

    def delete_book(self, owner_id: str, book_id: int) -> bool:
        with self._session(commit=True) as session:
            removed = BookCRUD.delete(session, owner_id, book_id)
        if removed:
            self._publish_books(owner_id)
        return removed

    def recent_books(self, limit: int = 100) -> list[Book]:
        return self._read(lambda s: [_to_record(Book, row) for row in BookCRUD.recent(s, limit)])

    def books_with_title(self, title: str) -> list[Book]:
        return self._read(lambda s: [_to_record(Book, row) for row in BookCRUD.with_title(s, title)])

    def _publish_books(self, owner_id: str) -> None:
        key = ("books", owner_id)
        self._feed.refresh(key, lambda: self.list_books(owner_id))

    # lists ---------------------------------------------------------------

    def subscribe_lists(self, owner_id: str, callback: Callable[[list[BookList]], None]) -> Subscription:
        return self._feed.subscribe(("lists", owner_id), callback, lambda: self.list_lists(owner_id))

    def list_lists(self, owner_id: str) -> list[BookList]:
        return self._read(lambda s: [_to_record(BookList, row) for row in BookListCRUD.list_by_owner(s, owner_id)])

    def get_list(self, owner_id: str, list_id: int) -> BookList | None:
        def fetch(session):
            row = BookListCRUD.get(session, owner_id, list_id)
            return _to_record(BookList, row) if row is not None else None

        return self._read(fetch)

    def write_list(self, book_list: BookList) -> BookList:
        with self._session(commit=True) as session:
            row = BookListCRUD.upsert(session, book_list.owner_id, book_list.id, **_fields(book_list, _LIST_FIELDS))
            stored = _to_record(BookList, row)
        self._publish_lists(book_list.owner_id)
        return stored

    def delete_list(self, owner_id: str, list_id: int) -> bool:
        with self._session(commit=True) as session:
            removed = BookListCRUD.delete(session, owner_id, list_id)
        if removed:
            self._publish_lists(owner_id)
        return removed

    def _publish_lists(self, owner_id: str) -> None:
        key = ("lists", owner_id)
        self._feed.refresh(key, lambda: self.list_lists(owner_id))

    # profiles ------------------------------------------------------------

    def get_profile(self, owner_id: str) -> UserProfile | None:
        def fetch(session):
            row = UserProfileCRUD.get(session, owner_id)
            return _to_record(UserProfile, row) if row is not None else None

        return self._read(fetch)

    def find_profile_by_username(self, username: str) -> UserProfile | None:
        def fetch(session):
            row = UserProfileCRUD.get_by_username(session, username)
            return _to_record(UserProfile, row) if row is not None else None

        return self._read(fetch)

    def write_profile(self, profile: UserProfile) -> UserProfile:
        with self._session(commit=True) as session:
            row = UserProfileCRUD.upsert(session, profile.owner_id, **_fields(profile, _PROFILE_FIELDS))
            return _to_record(UserProfile, row)

    # friend requests -----------------------------------------------------

    def get_request(self, request_id: str) -> FriendRequest | None:
        def fetch(session):
            row = FriendRequestCRUD.get(session, request_id)
            return _to_record(FriendRequest, row) if row is not None else None

        return self._read(fetch)

    def write_request(self, request: FriendRequest) -> FriendRequest:
        with self._session(commit=True) as session:
            row = FriendRequestCRUD.upsert(session, request.id, **_fields(request, _REQUEST_FIELDS))
            stored = _to_record(FriendRequest, row)
        self._publish_requests(stored.from_user_id, stored.to_user_id)
        return stored

    def delete_request(self, request_id: str) -> bool:
        with self._session(commit=True) as session:
            row = FriendRequestCRUD.get(session, request_id)
            parties = (row.from_user_id, row.to_user_id) if row is not None else ()
            removed = FriendRequestCRUD.delete(session, request_id)
        if removed:
            self._publish_requests(*parties)
        return removed

    def list_requests(self, from_user_id=None, to_user_id=None, status=None) -> list[FriendRequest]:
        return self._read(
            lambda s: [
                _to_record(FriendRequest, row)
                for row in FriendRequestCRUD.filter(s, from_user_id=from_user_id, to_user_id=to_user_id, status=status)
            ]
        )

    def subscribe_requests(self, owner_id: str, callback) -> Subscription:
        return self._feed.subscribe(("requests", owner_id), callback, lambda: self._requests_involving(owner_id))

    def _requests_involving(self, owner_id: str) -> list[FriendRequest]:
        def fetch(session):
            stmt = (
                select(models.FriendRequest)
                .where(
                    or_(
                        models.FriendRequest.from_user_id == owner_id,
                        models.FriendRequest.to_user_id == owner_id,
                    )
                )
                .order_by(models.FriendRequest.created_at.desc())
            )
            return [_to_record(FriendRequest, row) for row in session.scalars(stmt)]

        return self._read(fetch)

    def _publish_requests(self, *owner_ids: str) -> None:
        for owner_id in owner_ids:
            key = ("requests", owner_id)
            self._feed.refresh(key, lambda: self._requests_involving(owner_id))

    # friendships ---------------------------------------------------------

    def get_friendship(self, friendship_id: str) -> Friendship | None:
        def fetch(session):
            row = FriendshipCRUD.get(session, friendship_id)
            return _to_record(Friendship, row) if row is not None else None

        return self._read(fetch)

    def write_friendship(self, friendship: Friendship) -> Friendship:
        with self._session(commit=True) as session:
            row = FriendshipCRUD.upsert(session, friendship.id, **_fields(friendship, _FRIENDSHIP_FIELDS))
            stored = _to_record(Friendship, row)
        self._publish_friendships(stored.user1_id, stored.user2_id)
        return stored

    def delete_friendship(self, friendship_id: str) -> bool:
        with self._session(commit=True) as session:
            row = FriendshipCRUD.get(session, friendship_id)
            parties = (row.user1_id, row.user2_id) if row is not None else ()
            removed = FriendshipCRUD.delete(session, friendship_id)
        if removed:
            self._publish_friendships(*parties)
        return removed

    def list_friendships(self, owner_id: str) -> list[Friendship]:
        return self._read(lambda s: [_to_record(Friendship, row) for row in FriendshipCRUD.for_user(s, owner_id)])

    def subscribe_friendships(self, owner_id: str, callback) -> Subscription:
        return self._feed.subscribe(("friendships", owner_id), callback, lambda: self.list_friendships(owner_id))

    def _publish_friendships(self, *owner_ids: str) -> None:
        for owner_id in owner_ids:
            key = ("friendships", owner_id)
            self._feed.refresh(key, lambda: self.list_friendships(owner_id))

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
