"""Dictionary-backed document store.

Used for demo sessions (``read_only=True`` over the bundled sample library)
and as a lightweight store in tests.
"""

from __future__ import annotations

import threading
from typing import Callable

from ..context import DEMO_OWNER_ID
from ..errors import DemoModeError
from ..records import Book, BookList, FriendRequest, Friendship, UserProfile, utcnow
from .feed import ChangeFeed, Subscription
from .sample import sample_books, sample_lists, sample_profile


def _newest_first(records):
    return sorted(records, key=lambda record: record.id, reverse=True)


class MemoryDocumentStore:
    def __init__(self, read_only: bool = False):
        self.read_only = read_only
        self._lock = threading.RLock()
        self._feed = ChangeFeed()
        self._books: dict[tuple[str, int], Book] = {}
        self._lists: dict[tuple[str, int], BookList] = {}
        self._profiles: dict[str, UserProfile] = {}
        self._requests: dict[str, FriendRequest] = {}
        self._friendships: dict[str, Friendship] = {}

    @classmethod
    def demo(cls, owner_id: str = DEMO_OWNER_ID) -> "MemoryDocumentStore":
        """Read-only store preloaded with the sample library."""
        store = cls()
        for book in sample_books(owner_id):
            store._books[(owner_id, book.id)] = book
        for book_list in sample_lists(owner_id):
            store._lists[(owner_id, book_list.id)] = book_list
        store._profiles[owner_id] = sample_profile(owner_id)
        store.read_only = True
        return store

    def _check_writable(self) -> None:
        if self.read_only:
            raise DemoModeError()

    @staticmethod
    def _stamp(record, existing):
        now = utcnow()
        created = existing.created_at if existing is not None else (record.created_at or now)
        return record.model_copy(update={"created_at": created, "updated_at": now})

    # books ---------------------------------------------------------------

    def subscribe_books(self, owner_id: str, callback: Callable[[list[Book]], None]) -> Subscription:
        return self._feed.subscribe(("books", owner_id), callback, lambda: self.list_books(owner_id))

    def list_books(self, owner_id: str) -> list[Book]:
        with self._lock:
            return _newest_first(b for (owner, _), b in self._books.items() if owner == owner_id)

    def get_book(self, owner_id: str, book_id: int) -> Book | None:
        with self._lock:
            return self._books.get((owner_id, book_id))

    def write_book(self, book: Book) -> Book:
        self._check_writable()
        with self._lock:
            key = (book.owner_id, book.id)
            stored = self._stamp(book, self._books.get(key))
            self._books[key] = stored
        self._feed.refresh(("books", book.owner_id), lambda: self.list_books(book.owner_id))
        return stored

    def delete_book(self, owner_id: str, book_id: int) -> bool:
        self._check_writable()
        with self._lock:
            removed = self._books.pop((owner_id, book_id), None) is not None
        if removed:
            self._feed.refresh(("books", owner_id), lambda: self.list_books(owner_id))
        return removed

    def recent_books(self, limit: int = 100) -> list[Book]:
        with self._lock:
            books = list(self._books.values())
        books.sort(key=lambda b: (b.created_at is not None, b.created_at, b.id), reverse=True)
        return books[:limit]

    def books_with_title(self, title: str) -> list[Book]:
        with self._lock:
            return [b for b in self._books.values() if b.title == title]

    # lists ---------------------------------------------------------------

    def subscribe_lists(self, owner_id: str, callback: Callable[[list[BookList]], None]) -> Subscription:
        return self._feed.subscribe(("lists", owner_id), callback, lambda: self.list_lists(owner_id))

    def list_lists(self, owner_id: str) -> list[BookList]:
        with self._lock:
            return _newest_first(bl for (owner, _), bl in self._lists.items() if owner == owner_id)

    def get_list(self, owner_id: str, list_id: int) -> BookList | None:
        with self._lock:
            return self._lists.get((owner_id, list_id))

    def write_list(self, book_list: BookList) -> BookList:
        self._check_writable()
        with self._lock:
            key = (book_list.owner_id, book_list.id)
            stored = self._stamp(book_list, self._lists.get(key))
            self._lists[key] = stored
        self._feed.refresh(("lists", book_list.owner_id), lambda: self.list_lists(book_list.owner_id))
        return stored

    def delete_list(self, owner_id: str, list_id: int) -> bool:
        self._check_writable()
        with self._lock:
            removed = self._lists.pop((owner_id, list_id), None) is not None
        if removed:
            self._feed.refresh(("lists", owner_id), lambda: self.list_lists(owner_id))
        return removed

    # profiles ------------------------------------------------------------

    def get_profile(self, owner_id: str) -> UserProfile | None:
        with self._lock:
            return self._profiles.get(owner_id)

    def find_profile_by_username(self, username: str) -> UserProfile | None:
        username = username.strip().lower()
        with self._lock:
            for profile in self._profiles.values():
                if profile.username == username:
                    return profile
        return None

    def write_profile(self, profile: UserProfile) -> UserProfile:
        self._check_writable()
        with self._lock:
            stored = self._stamp(profile, self._profiles.get(profile.owner_id))
            self._profiles[profile.owner_id] = stored
        return stored

    # friend requests -----------------------------------------------------

    def get_request(self, request_id: str) -> FriendRequest | None:
        with self._lock:
            return self._requests.get(request_id)

    def write_request(self, request: FriendRequest) -> FriendRequest:
        self._check_writable()
        with self._lock:
            stored = self._stamp(request, self._requests.get(request.id))
            self._requests[request.id] = stored
        self._publish_requests(stored)
        return stored

    def delete_request(self, request_id: str) -> bool:
        self._check_writable()
        with self._lock:
            removed = self._requests.pop(request_id, None)
        if removed is not None:
            self._publish_requests(removed)
        return removed is not None

    def list_requests(self, from_user_id=None, to_user_id=None, status=None) -> list[FriendRequest]:
        with self._lock:
            requests = list(self._requests.values())
        return sorted(
            (
                r for r in requests
                if (from_user_id is None or r.from_user_id == from_user_id)
                and (to_user_id is None or r.to_user_id == to_user_id)
                and (status is None or r.status == status)
            ),
            key=lambda r: r.created_at,
            reverse=True,
        )

    def subscribe_requests(self, owner_id: str, callback) -> Subscription:
        return self._feed.subscribe(("requests", owner_id), callback, lambda: self._requests_involving(owner_id))

    def _requests_involving(self, owner_id: str) -> list[FriendRequest]:
        return self.list_requests(from_user_id=owner_id) + self.list_requests(to_user_id=owner_id)

    def _publish_requests(self, request: FriendRequest) -> None:
        for owner_id in (request.from_user_id, request.to_user_id):
            self._feed.refresh(("requests", owner_id), lambda: self._requests_involving(owner_id))

    # friendships ---------------------------------------------------------

    def get_friendship(self, friendship_id: str) -> Friendship | None:
        with self._lock:
            return self._friendships.get(friendship_id)

    def write_friendship(self, friendship: Friendship) -> Friendship:
        self._check_writable()
        with self._lock:
            existing = self._friendships.get(friendship.id)
            created = existing.created_at if existing else (friendship.created_at or utcnow())
            stored = friendship.model_copy(update={"created_at": created})
            self._friendships[friendship.id] = stored
        self._publish_friendships(stored)
        return stored

    def delete_friendship(self, friendship_id: str) -> bool:
        self._check_writable()
        with self._lock:
            removed = self._friendships.pop(friendship_id, None)
        if removed is not None:
            self._publish_friendships(removed)
        return removed is not None

    def list_friendships(self, owner_id: str) -> list[Friendship]:
        with self._lock:
            return [f for f in self._friendships.values() if owner_id in (f.user1_id, f.user2_id)]

    def subscribe_friendships(self, owner_id: str, callback) -> Subscription:
        return self._feed.subscribe(("friendships", owner_id), callback, lambda: self.list_friendships(owner_id))

    def _publish_friendships(self, friendship: Friendship) -> None:
        for owner_id in (friendship.user1_id, friendship.user2_id):
            self._feed.refresh(("friendships", owner_id), lambda: self.list_friendships(owner_id))

    def close(self) -> None:
        pass
