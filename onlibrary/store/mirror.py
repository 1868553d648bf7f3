"""In-memory mirror of one owner's library, kept current by subscription."""

from __future__ import annotations

import logging
import threading
import time

from cachetools import TTLCache

from ..errors import NotFoundError
from ..records import Book, BookList
from .base import DocumentStore
from .feed import Subscription

logger = logging.getLogger(__name__)


class LibraryMirror:
    """Holds the latest books and lists pushed by the store for ``owner_id``.

    Snapshots are replaced whole under a lock; readers always see a complete
    collection. Use as a context manager, or call ``open()``/``close()``.
    """

    def __init__(self, store: DocumentStore, owner_id: str):
        self.store = store
        self.owner_id = owner_id
        self._lock = threading.Lock()
        self._books: tuple[Book, ...] = ()
        self._lists: tuple[BookList, ...] = ()
        self._subscriptions: list[Subscription] = []

    @property
    def is_open(self) -> bool:
        return bool(self._subscriptions)

    def open(self) -> "LibraryMirror":
        if not self._subscriptions:
            self._subscriptions = [
                self.store.subscribe_books(self.owner_id, self._on_books),
                self.store.subscribe_lists(self.owner_id, self._on_lists),
            ]
            logger.debug("Opened library mirror for %s", self.owner_id)
        return self

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []

    def __enter__(self) -> "LibraryMirror":
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _on_books(self, books: list[Book]) -> None:
        with self._lock:
            self._books = tuple(books)

    def _on_lists(self, lists: list[BookList]) -> None:
        with self._lock:
            self._lists = tuple(lists)

    @property
    def books(self) -> list[Book]:
        """Newest first."""
        with self._lock:
            return list(self._books)

    @property
    def lists(self) -> list[BookList]:
        with self._lock:
            return list(self._lists)

    def book(self, book_id: int) -> Book:
        for book in self.books:
            if book.id == book_id:
                return book
        raise NotFoundError(f"Book {book_id} not found")

    def book_list(self, list_id: int) -> BookList:
        for book_list in self.lists:
            if book_list.id == list_id:
                return book_list
        raise NotFoundError(f"List {list_id} not found")


class _MirrorCache(TTLCache):
    """Closes mirrors as they expire or are pushed out by ``maxsize``."""

    def expire(self, time=None):
        expired = super().expire(time)
        for (_store_id, owner_id), mirror in expired:
            mirror.close()
            logger.debug("Closed idle library mirror for %s", owner_id)
        return expired

    def popitem(self):
        key, mirror = super().popitem()
        mirror.close()
        return key, mirror


class MirrorRegistry:
    """One open mirror per (store, owner), closed after ``idle_seconds`` without use."""

    def __init__(self, idle_seconds: float = 900, max_mirrors: int = 1024, timer=time.monotonic) -> None:
        self._lock = threading.Lock()
        self._mirrors = _MirrorCache(maxsize=max_mirrors, ttl=idle_seconds, timer=timer)

    def get(self, store: DocumentStore, owner_id: str) -> LibraryMirror:
        key = (id(store), owner_id)
        with self._lock:
            self._mirrors.expire()
            mirror = self._mirrors.get(key)
            if mirror is None:
                mirror = LibraryMirror(store, owner_id).open()
            # Re-inserting restarts the idle clock.
            self._mirrors[key] = mirror
            return mirror

    def close_all(self) -> None:
        with self._lock:
            self._mirrors.expire()
            mirrors = list(self._mirrors.values())
            self._mirrors.clear()
        for mirror in mirrors:
            mirror.close()
        if mirrors:
            logger.info("Closed %d library mirrors", len(mirrors))

    def __len__(self) -> int:
        with self._lock:
            self._mirrors.expire()
            return len(self._mirrors)
