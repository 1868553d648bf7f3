"""Fixtures for the library services: an in-memory store and reader contexts."""

from datetime import datetime, timedelta, timezone

import pytest

from onlibrary.context import ReaderContext, demo_context
from onlibrary.records import Book, UserProfile
from onlibrary.store import MemoryDocumentStore

_BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def ctx():
    return ReaderContext(owner_id="alice")


@pytest.fixture
def demo():
    return demo_context()


def make_book(book_id=1, title=None, owner_id="alice", **kwargs):
    kwargs.setdefault("authors", ["Author"])
    kwargs.setdefault("created_at", _BASE_TIME + timedelta(minutes=book_id))
    return Book(id=book_id, owner_id=owner_id, title=title or f"Book {book_id}", **kwargs)


def seed_books(store, *books):
    for book in books:
        store.write_book(book)
    return store.list_books(books[0].owner_id) if books else []


def make_profile(owner_id, username=None, **kwargs):
    username = username or owner_id
    kwargs.setdefault("display_name", username.title())
    return UserProfile(owner_id=owner_id, username=username, **kwargs)
