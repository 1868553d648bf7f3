"""Shared fixtures and factory helpers for the CRUD tests.

Uses an in-memory SQLite database, no running Postgres required.
Each test gets a completely fresh database (function-scoped engine).
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from onlibrary.db.base import Base
from onlibrary.db.crud import (
    BookCRUD,
    BookListCRUD,
    FriendRequestCRUD,
    FriendshipCRUD,
    UserCRUD,
    UserProfileCRUD,
)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def session():
    """Provide a fresh, isolated in-memory SQLite session for each test."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    with Session(engine, autoflush=False) as sess:
        yield sess


# ---------------------------------------------------------------------------
# Factory helpers (plain functions, not fixtures, so tests can call them
# with custom arguments easily)
# ---------------------------------------------------------------------------


def make_user(
    session,
    email="alice@example.com",
    display_name="Alice",
    password_hash="hashed_pw",
):
    return UserCRUD.create(
        session,
        email=email,
        display_name=display_name,
        password_hash=password_hash,
    )


def make_profile(session, user, username="alice", **kwargs):
    kwargs.setdefault("display_name", user.display_name)
    return UserProfileCRUD.upsert(session, user.id, username=username, **kwargs)


def make_book(session, user, book_id=1, title="1984", **kwargs):
    kwargs.setdefault("authors", ["George Orwell"])
    return BookCRUD.upsert(session, user.id, book_id, title=title, **kwargs)


def make_book_list(session, user, list_id=1, name="Favourites", **kwargs):
    return BookListCRUD.upsert(session, user.id, list_id, name=name, **kwargs)


def make_request(session, sender, recipient, request_id="req-1", status="pending"):
    return FriendRequestCRUD.upsert(
        session,
        request_id,
        from_user_id=sender.id,
        from_username=sender.display_name.lower(),
        to_user_id=recipient.id,
        to_username=recipient.display_name.lower(),
        status=status,
    )


def make_friendship(session, user_a, user_b):
    ids = sorted([user_a.id, user_b.id])
    return FriendshipCRUD.upsert(
        session,
        "_".join(ids),
        user1_id=user_a.id,
        user1_username=user_a.display_name.lower(),
        user2_id=user_b.id,
        user2_username=user_b.display_name.lower(),
    )
