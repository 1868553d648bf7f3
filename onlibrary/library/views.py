"""Search, sort and pagination over a library snapshot."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Literal, Sequence

from ..errors import ValidationError
from ..records import Book

SortOption = Literal["newest", "oldest", "title", "author"]
SORT_OPTIONS: tuple[str, ...] = ("newest", "oldest", "title", "author")
DEFAULT_PAGE_SIZE = 50


def matches(book: Book, query: str) -> bool:
    """Case-insensitive substring match on title, authors, any tag or notes."""
    needle = query.lower()
    if not needle:
        return True
    return (
        needle in book.title.lower()
        or needle in " ".join(book.authors).lower()
        or any(needle in tag.lower() for tag in book.tags)
        or needle in (book.notes or "").lower()
    )


def search(books: Iterable[Book], query: str | None) -> list[Book]:
    query = (query or "").strip()
    return [book for book in books if matches(book, query)]


def sort_books(books: Iterable[Book], option: str = "newest") -> list[Book]:
    if option == "title":
        return sorted(books, key=lambda b: b.title.casefold())
    if option == "author":
        return sorted(books, key=lambda b: b.first_author.casefold())
    if option == "oldest":
        return sorted(books, key=lambda b: b.id)
    if option == "newest":
        return sorted(books, key=lambda b: b.id, reverse=True)
    raise ValidationError("sort", f"Unknown sort option {option!r}")


def total_pages(count: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    return math.ceil(count / page_size) if count else 0


def clamp_page(page: int, pages: int) -> int:
    return min(max(page, 1), max(pages, 1))


@dataclass(frozen=True)
class Page:
    items: list[Book]
    page: int
    page_size: int
    total: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(books: Sequence[Book], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    if page_size < 1:
        raise ValidationError("page_size", "page_size must be positive")
    pages = total_pages(len(books), page_size)
    page = clamp_page(page, pages)
    start = (page - 1) * page_size
    return Page(list(books[start:start + page_size]), page, page_size, len(books), pages)


def page_links(current: int, pages: int) -> list[int | None]:
    """Page numbers to show in a pager; ``None`` marks an ellipsis.

    Keeps the first and last page and the neighbours of ``current``.
    """
    links: list[int | None] = []
    for number in range(1, pages + 1):
        if number in (1, pages) or current - 1 <= number <= current + 1:
            links.append(number)
        elif (number == 2 and current > 3) or (number == pages - 1 and current < pages - 2):
            links.append(None)
    return links


@dataclass
class BrowseState:
    """Search, sort and page selection for the library view.

    Changing the query or the sort always goes back to page 1.
    """

    query: str = ""
    sort: str = "newest"
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    selected_ids: set[int] = field(default_factory=set)

    def set_query(self, query: str) -> None:
        if query != self.query:
            self.query = query
            self.page = 1

    def set_sort(self, sort: str) -> None:
        if sort not in SORT_OPTIONS:
            raise ValidationError("sort", f"Unknown sort option {sort!r}")
        if sort != self.sort:
            self.sort = sort
            self.page = 1

    def go_to(self, page: int) -> None:
        self.page = page

    def toggle_selected(self, book_id: int) -> None:
        if book_id in self.selected_ids:
            self.selected_ids.discard(book_id)
        else:
            self.selected_ids.add(book_id)

    def clear_selection(self) -> None:
        self.selected_ids.clear()

    def apply(self, books: Iterable[Book]) -> Page:
        filtered = search(sort_books(books, self.sort), self.query)
        result = paginate(filtered, self.page, self.page_size)
        self.page = result.page
        return result
