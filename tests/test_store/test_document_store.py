"""Behaviour shared by every DocumentStore implementation."""

import pytest

from onlibrary.errors import DemoModeError
from onlibrary.records import FriendRequest, Friendship, friendship_id
from onlibrary.store import MemoryDocumentStore
from tests.test_store.conftest import make_book, make_list, make_profile


class TestBooks:
    def test_write_then_get(self, store):
        stored = store.write_book(make_book(tags=["Epic"], release_year=1965))
        assert stored.created_at is not None
        fetched = store.get_book("alice", 1)
        assert fetched.title == "Dune"
        assert fetched.tags == ["Epic"]
        assert fetched.release_year == 1965

    def test_get_missing(self, store):
        assert store.get_book("alice", 404) is None

    def test_rewrite_preserves_created_at(self, store):
        first = store.write_book(make_book())
        second = store.write_book(make_book(title="Dune (revised)"))
        assert second.created_at == first.created_at
        assert second.updated_at >= first.updated_at
        assert store.get_book("alice", 1).title == "Dune (revised)"

    def test_list_books_newest_first_per_owner(self, store):
        store.write_book(make_book(1, title="Old"))
        store.write_book(make_book(2, title="New"))
        store.write_book(make_book(3, owner_id="bob", title="Other"))
        assert [b.title for b in store.list_books("alice")] == ["New", "Old"]

    def test_delete(self, store):
        store.write_book(make_book())
        assert store.delete_book("alice", 1) is True
        assert store.delete_book("alice", 1) is False
        assert store.list_books("alice") == []

    def test_cross_owner_reads(self, store):
        store.write_book(make_book(1, owner_id="alice", title="Dune"))
        store.write_book(make_book(2, owner_id="bob", title="Dune"))
        store.write_book(make_book(3, owner_id="bob", title="Emma", authors=["Jane Austen"]))

        assert {b.owner_id for b in store.books_with_title("Dune")} == {"alice", "bob"}
        assert len(store.recent_books(limit=2)) == 2


class TestBookSubscription:
    def test_subscribe_pushes_current_collection_immediately(self, store):
        store.write_book(make_book())
        received = []
        store.subscribe_books("alice", received.append)
        assert [[b.id for b in snapshot] for snapshot in received] == [[1]]

    def test_every_write_republishes_whole_collection(self, store):
        received = []
        store.subscribe_books("alice", received.append)
        store.write_book(make_book(1))
        store.write_book(make_book(2, title="Emma"))
        store.delete_book("alice", 1)
        assert [[b.id for b in snapshot] for snapshot in received] == [[], [1], [2, 1], [2]]

    def test_other_owners_writes_are_not_delivered(self, store):
        received = []
        store.subscribe_books("alice", received.append)
        store.write_book(make_book(owner_id="bob"))
        assert received == [[]]

    def test_closed_subscription_receives_nothing(self, store):
        received = []
        subscription = store.subscribe_books("alice", received.append)
        subscription.close()
        store.write_book(make_book())
        assert received == [[]]


class TestLists:
    def test_round_trip_keeps_order(self, store):
        store.write_list(make_list(book_ids=[3, 1, 2]))
        assert store.get_list("alice", 1).book_ids == [3, 1, 2]

    def test_subscription_and_delete(self, store):
        received = []
        store.subscribe_lists("alice", received.append)
        store.write_list(make_list())
        store.delete_list("alice", 1)
        assert [len(snapshot) for snapshot in received] == [0, 1, 0]


class TestProfiles:
    def test_write_and_find_by_username(self, store):
        store.write_profile(make_profile(username="reader"))
        assert store.get_profile("alice").username == "reader"
        assert store.find_profile_by_username("READER").owner_id == "alice"
        assert store.find_profile_by_username("nobody") is None


class TestFriendRequests:
    def _request(self, status="pending"):
        return FriendRequest(
            id="alice_bob_1",
            from_user_id="alice",
            from_username="alice",
            to_user_id="bob",
            to_username="bob",
            status=status,
        )

    def test_list_requests_filters(self, store):
        store.write_request(self._request())
        assert len(store.list_requests(to_user_id="bob", status="pending")) == 1
        assert store.list_requests(to_user_id="alice") == []
        assert store.list_requests(from_user_id="alice", status="accepted") == []

    def test_both_parties_are_notified(self, store):
        alice_seen, bob_seen = [], []
        store.subscribe_requests("alice", alice_seen.append)
        store.subscribe_requests("bob", bob_seen.append)
        store.write_request(self._request())
        store.write_request(self._request(status="accepted"))

        assert [[r.status for r in snapshot] for snapshot in alice_seen] == [[], ["pending"], ["accepted"]]
        assert len(bob_seen) == 3

    def test_delete_notifies(self, store):
        store.write_request(self._request())
        bob_seen = []
        store.subscribe_requests("bob", bob_seen.append)
        assert store.delete_request("alice_bob_1") is True
        assert bob_seen[-1] == []
        assert store.get_request("alice_bob_1") is None


class TestFriendships:
    def test_write_list_and_delete(self, store):
        fid = friendship_id("bob", "alice")
        store.write_friendship(
            Friendship(id=fid, user1_id="bob", user1_username="bob", user2_id="alice", user2_username="alice")
        )
        assert fid == "alice_bob"
        assert [f.other("alice") for f in store.list_friendships("alice")] == ["bob"]

        seen = []
        store.subscribe_friendships("bob", seen.append)
        assert store.delete_friendship(fid) is True
        assert seen[-1] == []


class TestReadOnlyStore:
    def test_demo_store_has_sample_library(self):
        demo = MemoryDocumentStore.demo()
        assert len(demo.list_books("demo")) == 12
        assert len(demo.list_lists("demo")) == 4
        assert demo.get_profile("demo").username == "demo_reader"

    @pytest.mark.parametrize(
        "write",
        [
            lambda s: s.write_book(make_book(owner_id="demo")),
            lambda s: s.delete_book("demo", 1),
            lambda s: s.write_list(make_list(owner_id="demo")),
            lambda s: s.write_profile(make_profile(owner_id="demo")),
        ],
    )
    def test_demo_store_rejects_writes(self, write):
        demo = MemoryDocumentStore.demo()
        with pytest.raises(DemoModeError, match="This is a demo!"):
            write(demo)
        assert len(demo.list_books("demo")) == 12
