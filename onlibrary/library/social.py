"""Profiles, friend requests, friendships and what friends get to see."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from ..context import ReaderContext
from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..records import Book, BookList, FriendRequest, Friendship, UserProfile, friendship_id, new_record_id
from ..store.base import DocumentStore
from ..store.feed import Subscription

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
_USERNAME_RE = re.compile(r"^[a-z0-9_]+$")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

ACTIVITY_PER_FRIEND = 5
ACTIVITY_LIMIT = 10

_PROFILE_UPDATABLE = {
    "display_name",
    "profile_image_url",
    "show_books_to_friends",
    "show_lists_to_friends",
    "private_tag",
    "theme_preference",
}


def clean_username(raw: str | None) -> str:
    username = (raw or "").strip().lower()
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError("username", f"Username must be at least {MIN_USERNAME_LENGTH} characters")
    if not _USERNAME_RE.match(username):
        raise ValidationError("username", "Username can only contain letters, numbers, and underscores")
    return username


def visible_books(profile: UserProfile, books: Iterable[Book]) -> list[Book]:
    """What a friend may see of ``profile``'s library."""
    if not profile.show_books_to_friends:
        return []
    if not profile.private_tag:
        return list(books)
    hidden = profile.private_tag.lower()
    return [book for book in books if not any(tag.lower() == hidden for tag in book.tags)]


def _added_at(book: Book) -> datetime:
    if book.created_at is None:
        return _EPOCH
    if book.created_at.tzinfo is None:
        return book.created_at.replace(tzinfo=timezone.utc)
    return book.created_at


@dataclass(frozen=True)
class ActivityItem:
    owner_id: str
    username: str
    display_name: str
    book: Book
    action: str
    timestamp: datetime


def activity_feed(
    friends: Sequence[tuple[UserProfile, Sequence[Book]]],
    per_friend: int = ACTIVITY_PER_FRIEND,
    limit: int = ACTIVITY_LIMIT,
) -> list[ActivityItem]:
    """Most recently added visible books across friends, newest first."""
    items: list[ActivityItem] = []
    for profile, books in friends:
        recent = sorted(visible_books(profile, books), key=_added_at, reverse=True)[:per_friend]
        for book in recent:
            items.append(
                ActivityItem(
                    owner_id=profile.owner_id,
                    username=profile.username,
                    display_name=profile.display_name,
                    book=book,
                    action="finished" if book.finished_month else "added",
                    timestamp=_added_at(book),
                )
            )
    items.sort(key=lambda item: item.timestamp, reverse=True)
    return items[:limit]


class SocialService:
    def __init__(self, store: DocumentStore):
        self.store = store

    # profiles ------------------------------------------------------------

    def profile(self, ctx: ReaderContext) -> UserProfile | None:
        return self.store.get_profile(ctx.owner_id)

    def require_profile(self, ctx: ReaderContext) -> UserProfile:
        profile = self.profile(ctx)
        if profile is None:
            raise NotFoundError("Your profile not found")
        return profile

    def is_username_available(self, username: str) -> bool:
        return self.store.find_profile_by_username(clean_username(username)) is None

    def find_user(self, username: str) -> UserProfile | None:
        username = (username or "").strip().lower()
        if not username:
            return None
        return self.store.find_profile_by_username(username)

    def setup_profile(
        self,
        ctx: ReaderContext,
        username: str,
        display_name: str | None = None,
        email: str = "",
    ) -> UserProfile:
        ctx.require_writable("create a profile")
        username = clean_username(username)
        taken = self.store.find_profile_by_username(username)
        if taken is not None and taken.owner_id != ctx.owner_id:
            raise ValidationError("username", "Username already taken")
        existing = self.store.get_profile(ctx.owner_id)
        fields = {"username": username, "display_name": (display_name or "").strip() or username, "email": email}
        if existing is not None:
            profile = existing.model_copy(update=fields)
        else:
            profile = UserProfile(owner_id=ctx.owner_id, **fields)
        stored = self.store.write_profile(profile)
        logger.info("Profile @%s saved for %s", username, ctx.owner_id)
        return stored

    def update_profile(self, ctx: ReaderContext, **changes) -> UserProfile:
        ctx.require_writable("update your profile")
        unknown = set(changes) - _PROFILE_UPDATABLE
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Field cannot be updated")
        profile = self.require_profile(ctx)
        if "display_name" in changes:
            changes["display_name"] = (changes["display_name"] or "").strip() or profile.username
        if "private_tag" in changes:
            changes["private_tag"] = (changes["private_tag"] or "").strip() or None
        if "profile_image_url" in changes:
            changes["profile_image_url"] = (changes["profile_image_url"] or "").strip() or None
        if "theme_preference" in changes and changes["theme_preference"] not in ("light", "dark", "system"):
            raise ValidationError("theme_preference", "theme_preference must be light, dark or system")
        return self.store.write_profile(profile.model_copy(update=changes))

    # friend requests -----------------------------------------------------

    def send_request(self, ctx: ReaderContext, to_username: str) -> FriendRequest:
        ctx.require_writable("connect with friends")
        target = self.find_user(to_username)
        if target is None:
            raise NotFoundError("User not found")
        sender = self.store.get_profile(ctx.owner_id)
        if sender is None:
            raise NotFoundError("Your profile not found")
        if target.owner_id == ctx.owner_id:
            raise ValidationError("username", "Cannot send friend request to yourself")
        if self.are_friends(ctx.owner_id, target.owner_id):
            raise ValidationError("username", "Already friends with this user")
        pending = self.store.list_requests(from_user_id=ctx.owner_id, to_user_id=target.owner_id, status="pending")
        if pending:
            raise ValidationError("username", "Friend request already sent")

        request = FriendRequest(
            id=f"{ctx.owner_id}_{target.owner_id}_{new_record_id()}",
            from_user_id=ctx.owner_id,
            from_username=sender.username,
            to_user_id=target.owner_id,
            to_username=target.username,
        )
        stored = self.store.write_request(request)
        logger.info("Friend request %s sent", stored.id)
        return stored

    def incoming(self, ctx: ReaderContext) -> list[FriendRequest]:
        return self.store.list_requests(to_user_id=ctx.owner_id, status="pending")

    def outgoing(self, ctx: ReaderContext) -> list[FriendRequest]:
        return self.store.list_requests(from_user_id=ctx.owner_id, status="pending")

    def watch_requests(self, ctx: ReaderContext, callback: Callable[[list[FriendRequest], list[FriendRequest]], None]) -> Subscription:
        """Push ``(incoming, outgoing)`` pending requests on every change."""

        def split(requests: list[FriendRequest]) -> None:
            pending = [r for r in requests if r.status == "pending"]
            callback(
                [r for r in pending if r.to_user_id == ctx.owner_id],
                [r for r in pending if r.from_user_id == ctx.owner_id],
            )

        return self.store.subscribe_requests(ctx.owner_id, split)

    def _request(self, request_id: str) -> FriendRequest:
        request = self.store.get_request(request_id)
        if request is None:
            raise NotFoundError("Friend request not found")
        return request

    def accept(self, ctx: ReaderContext, request_id: str) -> Friendship:
        ctx.require_writable("connect with friends")
        request = self._request(request_id)
        if request.to_user_id != ctx.owner_id:
            raise PermissionDeniedError("Only the recipient can accept a friend request")
        if request.status != "pending":
            raise ValidationError("status", f"Friend request is already {request.status}")
        friendship = self.store.write_friendship(
            Friendship(
                id=friendship_id(request.from_user_id, request.to_user_id),
                user1_id=request.from_user_id,
                user1_username=request.from_username,
                user2_id=request.to_user_id,
                user2_username=request.to_username,
            )
        )
        self.store.write_request(request.model_copy(update={"status": "accepted"}))
        logger.info("Friend request %s accepted", request_id)
        return friendship

    def decline(self, ctx: ReaderContext, request_id: str) -> FriendRequest:
        ctx.require_writable("connect with friends")
        request = self._request(request_id)
        if request.to_user_id != ctx.owner_id:
            raise PermissionDeniedError("Only the recipient can decline a friend request")
        return self.store.write_request(request.model_copy(update={"status": "declined"}))

    def cancel(self, ctx: ReaderContext, request_id: str) -> None:
        ctx.require_writable("connect with friends")
        request = self._request(request_id)
        if request.from_user_id != ctx.owner_id:
            raise PermissionDeniedError("Only the sender can cancel a friend request")
        self.store.delete_request(request_id)

    # friendships ---------------------------------------------------------

    def are_friends(self, user_a: str, user_b: str) -> bool:
        return self.store.get_friendship(friendship_id(user_a, user_b)) is not None

    def friends(self, ctx: ReaderContext) -> list[UserProfile]:
        profiles = []
        for friendship in self.store.list_friendships(ctx.owner_id):
            profile = self.store.get_profile(friendship.other(ctx.owner_id))
            if profile is not None:
                profiles.append(profile)
        return sorted(profiles, key=lambda p: p.username)

    def watch_friends(self, ctx: ReaderContext, callback: Callable[[list[UserProfile]], None]) -> Subscription:
        def resolve(friendships: list[Friendship]) -> None:
            profiles = (self.store.get_profile(f.other(ctx.owner_id)) for f in friendships)
            callback(sorted((p for p in profiles if p is not None), key=lambda p: p.username))

        return self.store.subscribe_friendships(ctx.owner_id, resolve)

    def remove_friend(self, ctx: ReaderContext, friend_id: str) -> None:
        ctx.require_writable("connect with friends")
        if not self.store.delete_friendship(friendship_id(ctx.owner_id, friend_id)):
            raise NotFoundError("Friendship not found")
        logger.info("%s removed friend %s", ctx.owner_id, friend_id)

    def _friend_profile(self, ctx: ReaderContext, friend_id: str) -> UserProfile:
        if not self.are_friends(ctx.owner_id, friend_id):
            raise PermissionDeniedError("You can only view your friends' libraries")
        profile = self.store.get_profile(friend_id)
        if profile is None:
            raise NotFoundError("Friend profile not found")
        return profile

    def friend_books(self, ctx: ReaderContext, friend_id: str) -> list[Book]:
        profile = self._friend_profile(ctx, friend_id)
        return visible_books(profile, self.store.list_books(friend_id))

    def friend_lists(self, ctx: ReaderContext, friend_id: str) -> list[BookList]:
        profile = self._friend_profile(ctx, friend_id)
        if not profile.show_lists_to_friends:
            return []
        return self.store.list_lists(friend_id)

    def activity(self, ctx: ReaderContext) -> list[ActivityItem]:
        friends = [(profile, self.store.list_books(profile.owner_id)) for profile in self.friends(ctx)]
        return activity_feed(friends)
