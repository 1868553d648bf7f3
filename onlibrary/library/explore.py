"""Discover books other readers own."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..context import ReaderContext
from ..records import Book
from ..store.base import DocumentStore

RECENT_LIMIT = 100
SIMILAR_LIMIT = 50


def identity(book: Book) -> tuple[str, str]:
    """Books are "the same" across readers when title and first author match, ignoring case."""
    return book.title.lower(), book.first_author.lower()


def unique_books(books: Iterable[Book]) -> list[Book]:
    seen: set[tuple[str, str]] = set()
    result = []
    for book in books:
        key = identity(book)
        if key not in seen:
            seen.add(key)
            result.append(book)
    return result


def matches_explore_query(book: Book, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return (
        needle in book.title.lower()
        or any(needle in author.lower() for author in book.authors)
        or needle in (book.publisher or "").lower()
        or any(needle in tag.lower() for tag in book.tags)
    )


class ExploreService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def recent(self, ctx: ReaderContext, own_books: Sequence[Book], query: str = "", limit: int = RECENT_LIMIT) -> list[Book]:
        """Recently added books across readers that are not already in ``own_books``."""
        owned = {identity(book) for book in own_books}
        return [
            book
            for book in unique_books(self.store.recent_books(limit))
            if identity(book) not in owned and matches_explore_query(book, query)
        ]

    def readers_with(self, book: Book) -> set[str]:
        authors = {author.lower() for author in book.authors}
        return {
            other.owner_id
            for other in self.store.books_with_title(book.title)
            if any(author.lower() in authors for author in other.authors)
        }

    def similar(
        self, ctx: ReaderContext, book: Book, own_books: Sequence[Book], limit: int = SIMILAR_LIMIT
    ) -> list[Book]:
        """Books from readers who also own ``book``, ranked by tags shared with it."""
        tags = set(book.tags)
        if not tags:
            return []
        candidates: list[Book] = []
        for owner_id in sorted(self.readers_with(book)):
            if owner_id == ctx.owner_id:
                continue
            candidates.extend(b for b in self.store.list_books(owner_id) if tags.intersection(b.tags))
        candidates.sort(key=lambda b: len(tags.intersection(b.tags)), reverse=True)

        excluded = {identity(book)} | {identity(b) for b in own_books}
        ranked = [b for b in unique_books(candidates) if identity(b) not in excluded]
        return ranked[:limit]
