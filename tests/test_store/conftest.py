"""Document store fixtures.

``store`` is parametrized so every contract test runs against both the
in-memory and the SQLite-backed implementation.
"""

import pytest

from onlibrary.records import Book, BookList, UserProfile
from onlibrary.store import MemoryDocumentStore, SqlDocumentStore


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        instance = MemoryDocumentStore()
    else:
        instance = SqlDocumentStore.from_url("sqlite://", create_tables=True)
    yield instance
    instance.close()


def make_book(book_id=1, owner_id="alice", title="Dune", **kwargs):
    kwargs.setdefault("authors", ["Frank Herbert"])
    return Book(id=book_id, owner_id=owner_id, title=title, **kwargs)


def make_list(list_id=1, owner_id="alice", name="Favourites", **kwargs):
    return BookList(id=list_id, owner_id=owner_id, name=name, **kwargs)


def make_profile(owner_id="alice", username="alice", **kwargs):
    kwargs.setdefault("display_name", username.title())
    return UserProfile(owner_id=owner_id, username=username, **kwargs)
