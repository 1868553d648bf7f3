"""Document records exchanged with the persistence collaborator.

Records are immutable pydantic models; services derive new versions with
``model_copy(update=...)`` and write them back whole.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

MAX_TAGS_PER_BOOK = 7
MAX_LIST_NAME_LENGTH = 50

FriendRequestStatus = Literal["pending", "accepted", "declined"]
ThemePreference = Literal["light", "dark", "system"]

_id_lock = threading.Lock()
_last_id = 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


Timestamp = Annotated[datetime, AfterValidator(as_utc)]


def new_record_id() -> int:
    """Return a creation-ordered integer id (epoch milliseconds, strictly increasing)."""
    global _last_id
    with _id_lock:
        candidate = time.time_ns() // 1_000_000
        _last_id = max(candidate, _last_id + 1)
        return _last_id


class Book(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: str
    title: str
    authors: list[str] = Field(default_factory=list)
    isbn: str | None = None
    cover_url: str | None = None
    publisher: str | None = None
    tags: list[str] = Field(default_factory=list)
    finished_month: str | None = None  # YYYY-MM
    release_year: int | None = None
    notes: str | None = None
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None

    @property
    def first_author(self) -> str:
        return self.authors[0] if self.authors else ""

    @property
    def finished_year(self) -> str | None:
        if not self.finished_month:
            return None
        return self.finished_month.split("-")[0] or None

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


class BookList(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    owner_id: str
    name: str
    cover_url: str | None = None
    book_ids: list[int] = Field(default_factory=list)
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None


class UserProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner_id: str
    username: str
    display_name: str
    email: str = ""
    profile_image_url: str | None = None
    show_books_to_friends: bool = True
    show_lists_to_friends: bool = True
    private_tag: str | None = None
    theme_preference: ThemePreference = "system"
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None


class FriendRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    from_user_id: str
    from_username: str
    to_user_id: str
    to_username: str
    status: FriendRequestStatus = "pending"
    created_at: Timestamp | None = None
    updated_at: Timestamp | None = None


class Friendship(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user1_id: str
    user1_username: str
    user2_id: str
    user2_username: str
    created_at: Timestamp | None = None

    def other(self, owner_id: str) -> str:
        return self.user2_id if self.user1_id == owner_id else self.user1_id


def friendship_id(user_a: str, user_b: str) -> str:
    """Identifier shared by both participants: sorted ids joined with ``_``."""
    return "_".join(sorted([user_a, user_b]))
