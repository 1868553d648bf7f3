from datetime import datetime, timedelta, timezone

import pytest

from onlibrary.context import ReaderContext
from onlibrary.errors import DemoModeError, NotFoundError, PermissionDeniedError, ValidationError
from onlibrary.library.social import SocialService, activity_feed, clean_username, visible_books
from tests.test_library.conftest import make_book, make_profile


@pytest.fixture
def social(store):
    store.write_profile(make_profile("alice"))
    store.write_profile(make_profile("bob"))
    return SocialService(store)


@pytest.fixture
def bob():
    return ReaderContext(owner_id="bob")


def befriend(social, ctx, other_ctx, username):
    request = social.send_request(ctx, username)
    return social.accept(other_ctx, request.id)


class TestUsernames:
    def test_lowercases_and_strips(self):
        assert clean_username("  Reader_42 ") == "reader_42"

    @pytest.mark.parametrize("raw", ["ab", "", "has space", "dash-ed", "émile"])
    def test_rejects(self, raw):
        with pytest.raises(ValidationError) as excinfo:
            clean_username(raw)
        assert excinfo.value.field == "username"


class TestProfiles:
    def test_setup_defaults_display_name(self, store):
        profile = SocialService(store).setup_profile(ReaderContext("carol"), "Carol_R")
        assert profile.username == "carol_r"
        assert profile.display_name == "carol_r"

    def test_username_taken_by_someone_else(self, social):
        with pytest.raises(ValidationError, match="already taken"):
            social.setup_profile(ReaderContext("carol"), "bob")

    def test_setup_again_keeps_own_username(self, social, ctx):
        profile = social.setup_profile(ctx, "alice", "Alice A.")
        assert profile.display_name == "Alice A."

    def test_availability(self, social):
        assert not social.is_username_available("BOB")
        assert social.is_username_available("nobody")

    def test_update_profile(self, social, ctx):
        profile = social.update_profile(ctx, private_tag="  secret ", show_lists_to_friends=False, display_name="")
        assert profile.private_tag == "secret"
        assert profile.show_lists_to_friends is False
        assert profile.display_name == "alice"

    def test_update_rejects_unknown_field(self, social, ctx):
        with pytest.raises(ValidationError):
            social.update_profile(ctx, username="mallory")

    def test_update_rejects_bad_theme(self, social, ctx):
        with pytest.raises(ValidationError):
            social.update_profile(ctx, theme_preference="sepia")

    def test_update_without_profile(self, store):
        with pytest.raises(NotFoundError):
            SocialService(store).update_profile(ReaderContext("ghost"), display_name="Ghost")


class TestFriendRequests:
    def test_send_and_list(self, social, ctx, bob):
        request = social.send_request(ctx, "BOB")
        assert request.from_username == "alice"
        assert request.to_user_id == "bob"
        assert [r.id for r in social.incoming(bob)] == [request.id]
        assert [r.id for r in social.outgoing(ctx)] == [request.id]

    def test_unknown_user(self, social, ctx):
        with pytest.raises(NotFoundError, match="User not found"):
            social.send_request(ctx, "nobody")

    def test_sender_needs_profile(self, social):
        with pytest.raises(NotFoundError, match="Your profile"):
            social.send_request(ReaderContext("carol"), "bob")

    def test_not_to_yourself(self, social, ctx):
        with pytest.raises(ValidationError, match="yourself"):
            social.send_request(ctx, "alice")

    def test_no_duplicate_pending(self, social, ctx):
        social.send_request(ctx, "bob")
        with pytest.raises(ValidationError, match="already sent"):
            social.send_request(ctx, "bob")

    def test_already_friends(self, social, ctx, bob):
        befriend(social, ctx, bob, "bob")
        with pytest.raises(ValidationError, match="Already friends"):
            social.send_request(bob, "alice")

    def test_accept_creates_friendship(self, social, ctx, bob):
        friendship = befriend(social, ctx, bob, "bob")
        assert friendship.id == "alice_bob"
        assert social.are_friends("bob", "alice")
        assert [p.username for p in social.friends(ctx)] == ["bob"]
        assert social.incoming(bob) == []

    def test_only_recipient_accepts_or_declines(self, social, ctx):
        request = social.send_request(ctx, "bob")
        with pytest.raises(PermissionDeniedError):
            social.accept(ctx, request.id)
        with pytest.raises(PermissionDeniedError):
            social.decline(ctx, request.id)

    def test_accept_twice(self, social, ctx, bob):
        request = social.send_request(ctx, "bob")
        social.accept(bob, request.id)
        with pytest.raises(ValidationError):
            social.accept(bob, request.id)

    def test_decline(self, social, ctx, bob):
        request = social.send_request(ctx, "bob")
        assert social.decline(bob, request.id).status == "declined"
        assert not social.are_friends("alice", "bob")
        assert social.outgoing(ctx) == []

    def test_only_sender_cancels(self, social, ctx, bob):
        request = social.send_request(ctx, "bob")
        with pytest.raises(PermissionDeniedError):
            social.cancel(bob, request.id)
        social.cancel(ctx, request.id)
        with pytest.raises(NotFoundError):
            social.cancel(ctx, request.id)

    def test_watch_requests_splits_directions(self, social, ctx, bob):
        seen = []
        subscription = social.watch_requests(bob, lambda incoming, outgoing: seen.append((incoming, outgoing)))
        social.send_request(ctx, "bob")
        subscription.close()

        assert seen[0] == ([], [])
        incoming, outgoing = seen[-1]
        assert [r.from_user_id for r in incoming] == ["alice"]
        assert outgoing == []

    def test_demo_cannot_send(self, social, demo):
        with pytest.raises(DemoModeError):
            social.send_request(demo, "bob")


class TestFriendLibraries:
    def test_friend_books_hide_private_tag(self, store, social, ctx, bob):
        befriend(social, ctx, bob, "bob")
        store.write_book(make_book(1, "Public", owner_id="bob"))
        store.write_book(make_book(2, "Diary", owner_id="bob", tags=["Secret"]))
        social.update_profile(bob, private_tag="secret")

        assert [b.title for b in social.friend_books(ctx, "bob")] == ["Public"]

    def test_hidden_library(self, store, social, ctx, bob):
        befriend(social, ctx, bob, "bob")
        store.write_book(make_book(1, owner_id="bob"))
        social.update_profile(bob, show_books_to_friends=False, show_lists_to_friends=False)
        assert social.friend_books(ctx, "bob") == []
        assert social.friend_lists(ctx, "bob") == []

    def test_strangers_cannot_look(self, social, ctx):
        with pytest.raises(PermissionDeniedError):
            social.friend_books(ctx, "bob")

    def test_remove_friend(self, social, ctx, bob):
        befriend(social, ctx, bob, "bob")
        social.remove_friend(bob, "alice")
        assert social.friends(ctx) == []
        with pytest.raises(NotFoundError):
            social.remove_friend(ctx, "bob")

    def test_visible_books_case_insensitive(self):
        profile = make_profile("bob", private_tag="Secret")
        books = [make_book(1, tags=["secret"]), make_book(2)]
        assert [b.id for b in visible_books(profile, books)] == [2]


class TestActivityFeed:
    def test_newest_first_with_caps(self):
        start = datetime(2024, 5, 1, tzinfo=timezone.utc)
        bob = make_profile("bob")
        carol = make_profile("carol")
        bob_books = [make_book(i, owner_id="bob", created_at=start + timedelta(hours=i)) for i in range(1, 8)]
        carol_books = [
            make_book(100, owner_id="carol", created_at=start + timedelta(hours=10), finished_month="2024-05")
        ]

        items = activity_feed([(bob, bob_books), (carol, carol_books)], per_friend=5, limit=4)

        assert [item.book.id for item in items] == [100, 7, 6, 5]
        assert items[0].action == "finished"
        assert items[1].action == "added"
        assert items[1].username == "bob"

    def test_respects_privacy(self):
        bob = make_profile("bob", show_books_to_friends=False)
        assert activity_feed([(bob, [make_book(1, owner_id="bob")])]) == []

    def test_service_activity(self, store, social, ctx, bob):
        befriend(social, ctx, bob, "bob")
        store.write_book(make_book(1, "Fresh", owner_id="bob"))
        assert [item.book.title for item in social.activity(ctx)] == ["Fresh"]
