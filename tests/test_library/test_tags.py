import pytest

from onlibrary.errors import DemoModeError, PersistenceError, TagBatchError, ValidationError
from onlibrary.library.tags import (
    TagManager,
    add_tags,
    clean_tag,
    existing_tags,
    merge_tags,
    remove_tags,
    rename_tag,
)
from onlibrary.store import MemoryDocumentStore
from tests.test_library.conftest import make_book, seed_books


class FailingStore(MemoryDocumentStore):
    """Fails writes for ``fail_ids`` once armed."""

    def __init__(self, fail_ids):
        super().__init__()
        self.fail_ids = set(fail_ids)
        self.armed = False

    def write_book(self, book):
        if self.armed and book.id in self.fail_ids:
            raise PersistenceError("disk full")
        return super().write_book(book)


def tags_of(store, owner_id="alice"):
    return {b.id: b.tags for b in store.list_books(owner_id)}


class TestTagHelpers:
    def test_rename_keeps_position(self):
        assert rename_tag(["a", "b", "c"], "b", "x") == ["a", "x", "c"]

    def test_rename_onto_existing_tag_drops_old(self):
        assert rename_tag(["a", "b", "c"], "a", "c") == ["b", "c"]

    def test_rename_absent_tag_is_noop(self):
        assert rename_tag(["a"], "z", "y") == ["a"]

    def test_add_skips_duplicates(self):
        assert add_tags(["a"], ["a", "b", "b"]) == ["a", "b"]

    def test_remove(self):
        assert remove_tags(["a", "b", "c"], ["a", "c", "z"]) == ["b"]

    def test_merge_replaces_sources_with_target_once(self):
        assert merge_tags(["a", "b", "c"], ["a", "b"], "m") == ["c", "m"]
        assert merge_tags(["a", "m"], ["a"], "m") == ["m"]

    def test_merge_without_sources_is_noop(self):
        assert merge_tags(["c"], ["a"], "m") == ["c"]

    def test_merge_target_among_sources_survives(self):
        assert merge_tags(["m", "a", "b"], ["a", "m"], "m") == ["b", "m"]

    def test_rename_to_itself_is_identity(self):
        assert rename_tag(["a", "b"], "a", "a") == ["a", "b"]

    def test_remove_keeps_relative_order(self):
        assert remove_tags(["d", "a", "x", "c", "b"], ["x"]) == ["d", "a", "c", "b"]

    def test_clean_tag(self):
        assert clean_tag("  Sci-Fi ") == "Sci-Fi"
        with pytest.raises(ValidationError) as excinfo:
            clean_tag("   ", "new_tag")
        assert excinfo.value.field == "new_tag"

    def test_existing_tags_sorted_unique(self):
        books = [make_book(1, tags=["b", "a"]), make_book(2, tags=["a", "c"])]
        assert existing_tags(books) == ["a", "b", "c"]


class TestTagManager:
    def test_rename_touches_only_books_with_tag(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["old", "keep"]), make_book(2, tags=["other"]))
        result = TagManager(store).rename(ctx, books, "old", "new")

        assert (result.matched, result.updated) == (1, 1)
        assert tags_of(store) == {1: ["new", "keep"], 2: ["other"]}

    def test_rename_same_name_writes_nothing(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["x"]))
        result = TagManager(store).rename(ctx, books, "x", "x")
        assert (result.matched, result.updated) == (1, 0)

    def test_rename_validates_before_writing(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["x"]))
        with pytest.raises(ValidationError):
            TagManager(store).rename(ctx, books, "x", "  ")
        assert tags_of(store) == {1: ["x"]}

    def test_delete_asks_for_confirmation_with_count(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["gone"]), make_book(2, tags=["gone", "stay"]), make_book(3))
        asked = []

        def confirm(tag, count):
            asked.append((tag, count))
            return True

        result = TagManager(store).delete(ctx, books, "gone", confirm)

        assert asked == [("gone", 2)]
        assert result.updated == 2
        assert tags_of(store) == {1: [], 2: ["stay"], 3: []}

    def test_delete_declined_writes_nothing(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["gone"]))
        result = TagManager(store).delete(ctx, books, "gone", lambda tag, count: False)
        assert not result.confirmed
        assert result.updated == 0
        assert tags_of(store) == {1: ["gone"]}

    def test_merge(self, store, ctx):
        books = seed_books(
            store,
            make_book(1, tags=["scifi", "classic"]),
            make_book(2, tags=["sci-fi", "scifi"]),
            make_book(3, tags=["romance"]),
        )
        result = TagManager(store).merge(ctx, books, ["scifi", "sci-fi"], "Science Fiction")

        assert result.updated == 2
        assert tags_of(store) == {1: ["classic", "Science Fiction"], 2: ["Science Fiction"], 3: ["romance"]}

    def test_merge_requires_sources(self, store, ctx):
        with pytest.raises(ValidationError) as excinfo:
            TagManager(store).merge(ctx, [], [" "], "target")
        assert excinfo.value.field == "source_tags"

    def test_written_tag_may_not_contain_comma(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["scifi"]))
        manager = TagManager(store)
        with pytest.raises(ValidationError) as excinfo:
            manager.rename(ctx, books, "scifi", "Science, Fiction")
        assert excinfo.value.field == "new_tag"
        with pytest.raises(ValidationError):
            manager.add_to_selected(ctx, books, [1], ["a,b"])
        assert tags_of(store) == {1: ["scifi"]}

    def test_conditional_add(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["Japan"]), make_book(2, tags=["Japan", "Asia"]), make_book(3))
        result = TagManager(store).conditional_add(ctx, books, "Japan", "Asia")

        assert (result.matched, result.updated) == (2, 1)
        assert tags_of(store)[1] == ["Japan", "Asia"]

        again = TagManager(store).conditional_add(ctx, store.list_books("alice"), "Japan", "Asia")
        assert again.updated == 0
        assert tags_of(store)[1] == ["Japan", "Asia"]

    def test_add_and_remove_selected(self, store, ctx):
        books = seed_books(store, make_book(1, tags=["a"]), make_book(2), make_book(3))
        manager = TagManager(store)

        added = manager.add_to_selected(ctx, books, [1, 2], ["b"])
        assert added.updated == 2
        assert tags_of(store) == {1: ["a", "b"], 2: ["b"], 3: []}

        books = store.list_books("alice")
        removed = manager.remove_from_selected(ctx, books, [1, 3], ["a", "b"])
        assert (removed.matched, removed.updated) == (2, 1)
        assert tags_of(store) == {1: [], 2: ["b"], 3: []}

    def test_demo_context_is_rejected_before_any_write(self, store, demo):
        books = seed_books(store, make_book(1, owner_id="demo", tags=["x"]))
        with pytest.raises(DemoModeError):
            TagManager(store).rename(demo, books, "x", "y")
        assert tags_of(store, "demo") == {1: ["x"]}

    def test_concurrent_writes_update_every_book(self, store, ctx):
        books = seed_books(store, *[make_book(i, tags=["t"]) for i in range(1, 41)])
        result = TagManager(store, max_workers=8).rename(ctx, books, "t", "u")
        assert result.updated == 40
        assert all(tags == ["u"] for tags in tags_of(store).values())


class TestTagBatchFailure:
    def test_failure_reports_committed_writes(self, ctx):
        store = FailingStore(fail_ids=[1])
        # Newest first: writes go out as 3, 2, 1.
        books = seed_books(store, make_book(1, tags=["x"]), make_book(2, tags=["x"]), make_book(3, tags=["x"]))
        store.armed = True

        with pytest.raises(TagBatchError) as excinfo:
            TagManager(store, max_workers=1).rename(ctx, books, "x", "y")

        error = excinfo.value
        assert (error.committed, error.attempted) == (2, 3)
        assert isinstance(error.cause, PersistenceError)
        # Committed writes are not rolled back.
        assert tags_of(store) == {3: ["y"], 2: ["y"], 1: ["x"]}

    def test_fail_fast_count_matches_store(self, ctx):
        store = FailingStore(fail_ids=[20])
        books = seed_books(store, *[make_book(i, tags=["x"]) for i in range(1, 21)])
        store.armed = True

        with pytest.raises(TagBatchError) as excinfo:
            TagManager(store, max_workers=1).rename(ctx, books, "x", "y")

        written = sum(1 for tags in tags_of(store).values() if tags == ["y"])
        assert excinfo.value.committed == written
        assert excinfo.value.committed < excinfo.value.attempted == 20
        assert tags_of(store)[20] == ["x"]
