"""CRUD helpers aligned with the current SQLAlchemy schema.

This module provides lightweight, explicit CRUD classes per model in
``onlibrary.db.models``. All methods work with a SQLAlchemy ``Session`` and
flush on writes so rows are visible to the rest of the transaction; callers
own the commit.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .models import (
    Book,
    BookList,
    FriendRequest,
    Friendship,
    User,
    UserProfile,
)

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_non_empty(value: str | None, field_name: str) -> str:
    """Validate that a string field is not None, empty, or whitespace-only."""
    if value is None:
        raise ValueError(f"{field_name} is required")
    value = str(value).strip()
    if not value:
        raise ValueError(f"{field_name} must not be empty")
    return value


def _validate_email(email: str) -> str:
    """Validate basic email format and return the stripped value."""
    email = _require_non_empty(email, "email")
    if not _EMAIL_RE.match(email):
        raise ValueError(f"Invalid email format: {email!r}")
    return email


def _check_unique(
    session: Session, model, field, value, label: str, exclude=None,
) -> None:
    """Pre-check a UNIQUE column, raising ValueError on conflict.

    ``exclude`` is a ``(column, value)`` pair identifying the row being updated.
    """
    stmt = select(model).where(field == value)
    if exclude is not None:
        column, excluded = exclude
        stmt = stmt.where(column != excluded)
    if session.scalar(stmt) is not None:
        raise ValueError(f"{label} {value!r} is already taken")


def _apply(row, fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        setattr(row, key, value)


class UserCRUD:
    @staticmethod
    def get_by_id(session: Session, user_id: str) -> User | None:
        return session.get(User, user_id)

    @staticmethod
    def get_by_email(session: Session, email: str) -> User | None:
        stmt = select(User).where(User.email == email.strip().lower())
        return session.scalar(stmt)

    @staticmethod
    def create(session: Session, email: str, display_name: str, password_hash: str) -> User:
        email = _validate_email(email).lower()
        display_name = _require_non_empty(display_name, "display_name")
        password_hash = _require_non_empty(password_hash, "password_hash")
        _check_unique(session, User, User.email, email, "email")
        user = User(
            id=uuid.uuid4().hex,
            email=email,
            display_name=display_name,
            password_hash=password_hash,
        )
        session.add(user)
        session.flush()
        return user

    @staticmethod
    def update(session: Session, user_id: str, **kwargs) -> User:
        user = session.get(User, user_id)
        if not user:
            raise ValueError(f"User with id {user_id} not found")
        if "display_name" in kwargs:
            kwargs["display_name"] = _require_non_empty(kwargs["display_name"], "display_name")
        if "email" in kwargs:
            kwargs["email"] = _validate_email(kwargs["email"]).lower()
            _check_unique(session, User, User.email, kwargs["email"], "email", exclude=(User.id, user_id))
        _apply(user, kwargs)
        session.flush()
        return user

    @staticmethod
    def delete(session: Session, user_id: str) -> bool:
        user = session.get(User, user_id)
        if not user:
            return False
        session.delete(user)
        session.flush()
        return True


class UserProfileCRUD:
    @staticmethod
    def get(session: Session, owner_id: str) -> UserProfile | None:
        return session.get(UserProfile, owner_id)

    @staticmethod
    def get_by_username(session: Session, username: str) -> UserProfile | None:
        stmt = select(UserProfile).where(UserProfile.username == username.strip().lower())
        return session.scalar(stmt)

    @staticmethod
    def upsert(session: Session, owner_id: str, **fields) -> UserProfile:
        if "username" in fields:
            fields["username"] = _require_non_empty(fields["username"], "username").lower()
            _check_unique(
                session, UserProfile, UserProfile.username, fields["username"], "username",
                exclude=(UserProfile.owner_id, owner_id),
            )
        fields.pop("created_at", None)
        fields["updated_at"] = _utcnow()
        profile = session.get(UserProfile, owner_id)
        if profile is None:
            profile = UserProfile(owner_id=owner_id, created_at=fields["updated_at"])
            session.add(profile)
        _apply(profile, fields)
        session.flush()
        return profile


class BookCRUD:
    @staticmethod
    def get(session: Session, owner_id: str, book_id: int) -> Book | None:
        return session.get(Book, (owner_id, book_id))

    @staticmethod
    def list_by_owner(session: Session, owner_id: str) -> list[Book]:
        stmt = (
            select(Book)
            .where(Book.owner_id == owner_id)
            .order_by(Book.created_at.desc(), Book.id.desc())
        )
        return list(session.scalars(stmt).all())

    @staticmethod
    def recent(session: Session, limit: int = 100) -> list[Book]:
        stmt = select(Book).order_by(Book.created_at.desc(), Book.id.desc()).limit(limit)
        return list(session.scalars(stmt).all())

    @staticmethod
    def with_title(session: Session, title: str) -> list[Book]:
        stmt = select(Book).where(Book.title == title)
        return list(session.scalars(stmt).all())

    @staticmethod
    def upsert(session: Session, owner_id: str, book_id: int, **fields) -> Book:
        """Insert or replace one book document; ``created_at`` survives replacement."""
        fields["title"] = _require_non_empty(fields.get("title"), "title")
        fields.pop("created_at", None)
        fields["updated_at"] = _utcnow()
        book = session.get(Book, (owner_id, book_id))
        if book is None:
            book = Book(owner_id=owner_id, id=book_id, created_at=fields["updated_at"])
            session.add(book)
        _apply(book, fields)
        session.flush()
        return book

    @staticmethod
    def delete(session: Session, owner_id: str, book_id: int) -> bool:
        book = session.get(Book, (owner_id, book_id))
        if not book:
            return False
        session.delete(book)
        session.flush()
        return True


class BookListCRUD:
    @staticmethod
    def get(session: Session, owner_id: str, list_id: int) -> BookList | None:
        return session.get(BookList, (owner_id, list_id))

    @staticmethod
    def list_by_owner(session: Session, owner_id: str) -> list[BookList]:
        stmt = (
            select(BookList)
            .where(BookList.owner_id == owner_id)
            .order_by(BookList.created_at.desc(), BookList.id.desc())
        )
        return list(session.scalars(stmt).all())

    @staticmethod
    def upsert(session: Session, owner_id: str, list_id: int, **fields) -> BookList:
        fields["name"] = _require_non_empty(fields.get("name"), "name")
        fields.pop("created_at", None)
        fields["updated_at"] = _utcnow()
        book_list = session.get(BookList, (owner_id, list_id))
        if book_list is None:
            book_list = BookList(owner_id=owner_id, id=list_id, created_at=fields["updated_at"])
            session.add(book_list)
        if "book_ids" in fields:
            fields["book_ids"] = [int(book_id) for book_id in fields["book_ids"]]
        _apply(book_list, fields)
        session.flush()
        return book_list

    @staticmethod
    def delete(session: Session, owner_id: str, list_id: int) -> bool:
        book_list = session.get(BookList, (owner_id, list_id))
        if not book_list:
            return False
        session.delete(book_list)
        session.flush()
        return True


class FriendRequestCRUD:
    @staticmethod
    def get(session: Session, request_id: str) -> FriendRequest | None:
        return session.get(FriendRequest, request_id)

    @staticmethod
    def filter(
        session: Session,
        from_user_id: str | None = None,
        to_user_id: str | None = None,
        status: str | None = None,
    ) -> list[FriendRequest]:
        stmt = select(FriendRequest)
        if from_user_id is not None:
            stmt = stmt.where(FriendRequest.from_user_id == from_user_id)
        if to_user_id is not None:
            stmt = stmt.where(FriendRequest.to_user_id == to_user_id)
        if status is not None:
            stmt = stmt.where(FriendRequest.status == status)
        stmt = stmt.order_by(FriendRequest.created_at.desc())
        return list(session.scalars(stmt).all())

    @staticmethod
    def upsert(session: Session, request_id: str, **fields) -> FriendRequest:
        fields.pop("created_at", None)
        fields["updated_at"] = _utcnow()
        request = session.get(FriendRequest, request_id)
        if request is None:
            request = FriendRequest(id=request_id, created_at=fields["updated_at"])
            session.add(request)
        _apply(request, fields)
        session.flush()
        return request

    @staticmethod
    def delete(session: Session, request_id: str) -> bool:
        request = session.get(FriendRequest, request_id)
        if not request:
            return False
        session.delete(request)
        session.flush()
        return True


class FriendshipCRUD:
    @staticmethod
    def get(session: Session, friendship_id: str) -> Friendship | None:
        return session.get(Friendship, friendship_id)

    @staticmethod
    def for_user(session: Session, owner_id: str) -> list[Friendship]:
        stmt = select(Friendship).where(
            or_(Friendship.user1_id == owner_id, Friendship.user2_id == owner_id)
        )
        return list(session.scalars(stmt).all())

    @staticmethod
    def upsert(session: Session, friendship_id: str, **fields) -> Friendship:
        friendship = session.get(Friendship, friendship_id)
        if friendship is None:
            friendship = Friendship(id=friendship_id, created_at=fields.pop("created_at", None) or _utcnow())
            session.add(friendship)
        else:
            fields.pop("created_at", None)
        _apply(friendship, fields)
        session.flush()
        return friendship

    @staticmethod
    def delete(session: Session, friendship_id: str) -> bool:
        friendship = session.get(Friendship, friendship_id)
        if not friendship:
            return False
        session.delete(friendship)
        session.flush()
        return True
