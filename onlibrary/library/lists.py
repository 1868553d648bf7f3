"""Reading lists: create, rename, order and delete.

Every change writes the whole list document back, so the last write wins.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from ..context import ReaderContext
from ..errors import NotFoundError, ValidationError
from ..records import MAX_LIST_NAME_LENGTH, Book, BookList, new_record_id
from ..store.base import DocumentStore
from . import ordering

logger = logging.getLogger(__name__)

UNTITLED_LIST = "Untitled list"


def clean_list_name(name: str | None, fallback: str | None = None) -> str:
    name = (name or "").strip()
    if not name:
        if fallback is None:
            raise ValidationError("name", "List name must not be empty")
        name = fallback
    if len(name) > MAX_LIST_NAME_LENGTH:
        raise ValidationError("name", f"List name must be at most {MAX_LIST_NAME_LENGTH} characters")
    return name


class ListService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self, ctx: ReaderContext, list_id: int) -> BookList:
        book_list = self.store.get_list(ctx.owner_id, list_id)
        if book_list is None:
            raise NotFoundError(f"List {list_id} not found")
        return book_list

    def all(self, ctx: ReaderContext) -> list[BookList]:
        """Newest first."""
        return self.store.list_lists(ctx.owner_id)

    def books_in(self, ctx: ReaderContext, list_id: int, books: Iterable[Book]) -> list[Book]:
        return ordering.resolve(self.get(ctx, list_id).book_ids, books)

    def create(
        self,
        ctx: ReaderContext,
        name: str,
        book_ids: Sequence[int] = (),
        cover_url: str | None = None,
    ) -> BookList:
        ctx.require_writable("create your own lists")
        ids: list[int] = []
        for book_id in book_ids:
            ids = ordering.append(ids, book_id)
        book_list = BookList(
            id=new_record_id(),
            owner_id=ctx.owner_id,
            name=clean_list_name(name),
            cover_url=(cover_url or "").strip() or None,
            book_ids=ids,
        )
        stored = self.store.write_list(book_list)
        logger.info("Created list %s (%d books) for %s", stored.id, len(ids), ctx.owner_id)
        return stored

    def _update(self, ctx: ReaderContext, list_id: int, change: Callable[[BookList], dict]) -> BookList:
        ctx.require_writable("modify lists")
        current = self.get(ctx, list_id)
        return self.store.write_list(current.model_copy(update=change(current)))

    def rename(self, ctx: ReaderContext, list_id: int, name: str) -> BookList:
        name = clean_list_name(name, fallback=UNTITLED_LIST)
        return self._update(ctx, list_id, lambda _: {"name": name})

    def set_cover(self, ctx: ReaderContext, list_id: int, cover_url: str | None) -> BookList:
        return self._update(ctx, list_id, lambda _: {"cover_url": (cover_url or "").strip() or None})

    def append(self, ctx: ReaderContext, list_id: int, book_id: int) -> BookList:
        return self._update(ctx, list_id, lambda bl: {"book_ids": ordering.append(bl.book_ids, book_id)})

    def remove(self, ctx: ReaderContext, list_id: int, book_id: int) -> BookList:
        return self._update(ctx, list_id, lambda bl: {"book_ids": ordering.remove(bl.book_ids, book_id)})

    def toggle(self, ctx: ReaderContext, list_id: int, book_id: int) -> BookList:
        return self._update(ctx, list_id, lambda bl: {"book_ids": ordering.toggle(bl.book_ids, book_id)})

    def reorder(self, ctx: ReaderContext, list_id: int, from_index: int, to_index: int) -> BookList:
        return self._update(
            ctx, list_id, lambda bl: {"book_ids": ordering.reorder(bl.book_ids, from_index, to_index)}
        )

    def move(self, ctx: ReaderContext, list_id: int, active_id: int, over_id: int) -> BookList:
        return self._update(
            ctx, list_id, lambda bl: {"book_ids": ordering.move_by_id(bl.book_ids, active_id, over_id)}
        )

    def replace_order(self, ctx: ReaderContext, list_id: int, book_ids: Sequence[int]) -> BookList:
        return self._update(ctx, list_id, lambda _: {"book_ids": list(book_ids)})

    def delete(self, ctx: ReaderContext, list_id: int) -> None:
        ctx.require_writable("modify lists")
        if not self.store.delete_list(ctx.owner_id, list_id):
            raise NotFoundError(f"List {list_id} not found")
        logger.info("Deleted list %s for %s", list_id, ctx.owner_id)
