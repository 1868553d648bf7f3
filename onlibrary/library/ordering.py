"""Sequence helpers for a list's ordered ``book_ids``.

All functions return a new list and leave their input untouched.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ..errors import ValidationError
from ..records import Book


def reorder(ids: Sequence[int], from_index: int, to_index: int) -> list[int]:
    """Move the element at ``from_index`` so it ends up at ``to_index``.

    This is remove-then-insert, not a swap: ``reorder([a, b, c, d], 0, 2)``
    gives ``[b, c, a, d]``.
    """
    size = len(ids)
    for name, index in (("from_index", from_index), ("to_index", to_index)):
        if not 0 <= index < size:
            raise ValidationError(name, f"{name} {index} is out of range for {size} books")
    result = list(ids)
    moved = result.pop(from_index)
    result.insert(to_index, moved)
    return result


def move_by_id(ids: Sequence[int], active_id: int, over_id: int) -> list[int]:
    """Drag-end helper: move ``active_id`` to the position held by ``over_id``."""
    if active_id == over_id or active_id not in ids or over_id not in ids:
        return list(ids)
    return reorder(ids, list(ids).index(active_id), list(ids).index(over_id))


def append(ids: Sequence[int], book_id: int) -> list[int]:
    if book_id in ids:
        return list(ids)
    return [*ids, book_id]


def remove(ids: Sequence[int], book_id: int) -> list[int]:
    return [existing for existing in ids if existing != book_id]


def toggle(ids: Sequence[int], book_id: int) -> list[int]:
    if book_id in ids:
        return remove(ids, book_id)
    return append(ids, book_id)


def resolve(ids: Sequence[int], books: Iterable[Book]) -> list[Book]:
    """Books in list order; ids with no matching book are skipped."""
    by_id = {book.id: book for book in books}
    return [by_id[book_id] for book_id in ids if book_id in by_id]
