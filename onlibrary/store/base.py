"""Protocol for the persistence collaborator used by every library service."""

from __future__ import annotations

from typing import Callable, Protocol

from ..records import Book, BookList, FriendRequest, Friendship, UserProfile
from .feed import Subscription


class DocumentStore(Protocol):
    """Per-owner document collections with push subscriptions.

    Writes are upserts keyed by ``(owner_id, id)``; ``created_at`` is kept
    from the stored document and ``updated_at`` is set by the store.
    ``subscribe_*`` pushes the current collection immediately and then after
    every change until the returned subscription is closed.
    """

    read_only: bool

    # books
    def subscribe_books(self, owner_id: str, callback: Callable[[list[Book]], None]) -> Subscription: ...

    def list_books(self, owner_id: str) -> list[Book]: ...

    def get_book(self, owner_id: str, book_id: int) -> Book | None: ...

    def write_book(self, book: Book) -> Book: ...

    def delete_book(self, owner_id: str, book_id: int) -> bool: ...

    def recent_books(self, limit: int = 100) -> list[Book]: ...

    def books_with_title(self, title: str) -> list[Book]: ...

    # lists
    def subscribe_lists(self, owner_id: str, callback: Callable[[list[BookList]], None]) -> Subscription: ...

    def list_lists(self, owner_id: str) -> list[BookList]: ...

    def get_list(self, owner_id: str, list_id: int) -> BookList | None: ...

    def write_list(self, book_list: BookList) -> BookList: ...

    def delete_list(self, owner_id: str, list_id: int) -> bool: ...

    # profiles
    def get_profile(self, owner_id: str) -> UserProfile | None: ...

    def find_profile_by_username(self, username: str) -> UserProfile | None: ...

    def write_profile(self, profile: UserProfile) -> UserProfile: ...

    # friend requests
    def get_request(self, request_id: str) -> FriendRequest | None: ...

    def write_request(self, request: FriendRequest) -> FriendRequest: ...

    def delete_request(self, request_id: str) -> bool: ...

    def list_requests(
        self,
        from_user_id: str | None = None,
        to_user_id: str | None = None,
        status: str | None = None,
    ) -> list[FriendRequest]: ...

    def subscribe_requests(
        self, owner_id: str, callback: Callable[[list[FriendRequest]], None]
    ) -> Subscription: ...

    # friendships
    def get_friendship(self, friendship_id: str) -> Friendship | None: ...

    def write_friendship(self, friendship: Friendship) -> Friendship: ...

    def delete_friendship(self, friendship_id: str) -> bool: ...

    def list_friendships(self, owner_id: str) -> list[Friendship]: ...

    def subscribe_friendships(
        self, owner_id: str, callback: Callable[[list[Friendship]], None]
    ) -> Subscription: ...

    def close(self) -> None: ...
