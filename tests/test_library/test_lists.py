import pytest

from onlibrary.context import ReaderContext
from onlibrary.errors import DemoModeError, NotFoundError, ValidationError
from onlibrary.library.lists import UNTITLED_LIST, ListService, clean_list_name
from tests.test_library.conftest import make_book


@pytest.fixture
def lists(store):
    return ListService(store)


class TestListNames:
    def test_strips(self):
        assert clean_list_name("  Summer  ") == "Summer"

    def test_blank_without_fallback(self):
        with pytest.raises(ValidationError) as excinfo:
            clean_list_name("  ")
        assert excinfo.value.field == "name"

    def test_blank_with_fallback(self):
        assert clean_list_name("", fallback=UNTITLED_LIST) == "Untitled list"

    def test_length_limit(self):
        assert clean_list_name("x" * 50) == "x" * 50
        with pytest.raises(ValidationError):
            clean_list_name("x" * 51)


class TestListService:
    def test_create_drops_duplicate_ids(self, lists, ctx):
        book_list = lists.create(ctx, "Favourites", [3, 1, 3, 2])
        assert book_list.book_ids == [3, 1, 2]
        assert lists.get(ctx, book_list.id) == book_list

    def test_create_requires_name(self, lists, ctx):
        with pytest.raises(ValidationError):
            lists.create(ctx, " ")

    def test_names_need_not_be_unique(self, lists, ctx):
        first = lists.create(ctx, "To Read")
        second = lists.create(ctx, "to read ")
        assert first.id != second.id
        assert sorted(bl.name for bl in lists.all(ctx)) == ["To Read", "to read"]

    def test_all_newest_first(self, lists, ctx):
        first = lists.create(ctx, "First")
        second = lists.create(ctx, "Second")
        assert [bl.id for bl in lists.all(ctx)] == [second.id, first.id]

    def test_rename_blank_becomes_untitled(self, lists, ctx):
        book_list = lists.create(ctx, "Old")
        assert lists.rename(ctx, book_list.id, "  ").name == "Untitled list"
        assert lists.rename(ctx, book_list.id, "New").name == "New"

    def test_set_cover(self, lists, ctx):
        book_list = lists.create(ctx, "Covered")
        assert lists.set_cover(ctx, book_list.id, " https://img/x.jpg ").cover_url == "https://img/x.jpg"
        assert lists.set_cover(ctx, book_list.id, "").cover_url is None

    def test_append_remove_toggle(self, lists, ctx):
        book_list = lists.create(ctx, "Queue", [1])
        assert lists.append(ctx, book_list.id, 2).book_ids == [1, 2]
        assert lists.append(ctx, book_list.id, 2).book_ids == [1, 2]
        assert lists.toggle(ctx, book_list.id, 1).book_ids == [2]
        assert lists.toggle(ctx, book_list.id, 1).book_ids == [2, 1]
        assert lists.remove(ctx, book_list.id, 2).book_ids == [1]

    def test_reorder_and_move(self, lists, ctx):
        book_list = lists.create(ctx, "Ranked", [10, 20, 30, 40])
        assert lists.reorder(ctx, book_list.id, 0, 2).book_ids == [20, 30, 10, 40]
        assert lists.move(ctx, book_list.id, 40, 20).book_ids == [40, 20, 30, 10]
        with pytest.raises(ValidationError):
            lists.reorder(ctx, book_list.id, 0, 4)

    def test_replace_order(self, lists, ctx):
        book_list = lists.create(ctx, "Ranked", [1, 2, 3])
        assert lists.replace_order(ctx, book_list.id, [3, 1, 2]).book_ids == [3, 1, 2]

    def test_books_in_skips_deleted_books(self, lists, ctx):
        books = [make_book(1, "Dune"), make_book(3, "Emma")]
        book_list = lists.create(ctx, "Mixed", [3, 2, 1])
        assert [b.title for b in lists.books_in(ctx, book_list.id, books)] == ["Emma", "Dune"]
        assert lists.get(ctx, book_list.id).book_ids == [3, 2, 1]

    def test_missing_list(self, lists, ctx):
        with pytest.raises(NotFoundError):
            lists.append(ctx, 999, 1)
        with pytest.raises(NotFoundError):
            lists.delete(ctx, 999)

    def test_delete(self, lists, ctx):
        book_list = lists.create(ctx, "Temporary")
        lists.delete(ctx, book_list.id)
        assert lists.all(ctx) == []

    def test_lists_are_per_owner(self, lists, ctx):
        book_list = lists.create(ctx, "Mine")
        with pytest.raises(NotFoundError):
            lists.get(ReaderContext(owner_id="bob"), book_list.id)

    def test_demo_is_read_only(self, lists, demo):
        with pytest.raises(DemoModeError):
            lists.create(demo, "Nope")
