"""Reading statistics derived from a library snapshot."""

from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from ..records import Book

TOP_N = 10


@dataclass(frozen=True)
class StatsFilter:
    """``None`` means "all" for every dimension."""

    author: str | None = None
    year: str | None = None
    tag: str | None = None
    timeline_year: str | None = None


@dataclass(frozen=True)
class LibraryStats:
    total_books: int
    finished_count: int
    years: list[str]
    authors: list[tuple[str, int]]
    tags: list[str]
    view_count: int
    tag_counts: list[tuple[str, int]]
    most_used_tag: tuple[str, int] | None
    co_occurring_tags: list[tuple[str, int]]
    timeline: list[tuple[str, int]]
    decades: list[tuple[str, int]]
    books_per_year: dict[str, int]
    books_in_selected_year: int
    average_per_month: float
    applied: StatsFilter = field(default_factory=StatsFilter)

    @property
    def top_tags(self) -> list[tuple[str, int]]:
        return self.tag_counts[:TOP_N]


def _by_count(counter: Counter) -> list[tuple[str, int]]:
    # Stable: equal counts keep first-seen order.
    return sorted(counter.items(), key=lambda item: -item[1])


def _parse_month(value: str) -> tuple[int, int] | None:
    year, _, month = value.partition("-")
    try:
        return int(year), int(month)
    except ValueError:
        return None


def finished_books(books: Iterable[Book]) -> list[Book]:
    return [book for book in books if book.finished_month]


def finished_years(books: Iterable[Book]) -> list[str]:
    return sorted({book.finished_year for book in finished_books(books) if book.finished_year})


def author_counts(books: Iterable[Book]) -> list[tuple[str, int]]:
    """Books per author over the whole collection, sorted by name."""
    counts: Counter = Counter()
    for book in books:
        for author in book.authors:
            name = author.strip()
            if name:
                counts[name] += 1
    return sorted(counts.items(), key=lambda item: item[0].casefold())


def tag_counts(books: Iterable[Book]) -> list[tuple[str, int]]:
    counts: Counter = Counter()
    for book in books:
        counts.update(book.tags)
    return _by_count(counts)


def co_occurring_tags(books: Iterable[Book], focus_tag: str, limit: int = TOP_N) -> list[tuple[str, int]]:
    counts: Counter = Counter()
    for book in books:
        if focus_tag in book.tags:
            counts.update(tag for tag in book.tags if tag != focus_tag)
    return _by_count(counts)[:limit]


def timeline(books: Iterable[Book], year: str | None = None) -> list[tuple[str, int]]:
    """Finished counts per ``YYYY-MM``.

    With ``year`` the twelve months of that year; otherwise every month from
    the earliest to the latest finished month, gaps filled with zero.
    """
    counts = Counter(
        book.finished_month
        for book in books
        if book.finished_month and (year is None or book.finished_month.startswith(year))
    )
    if year is not None:
        return [(f"{year}-{month:02d}", counts.get(f"{year}-{month:02d}", 0)) for month in range(1, 13)]

    parsed = sorted(p for p in (_parse_month(m) for m in counts) if p is not None)
    if not parsed:
        return []
    (first_year, first_month), (last_year, last_month) = parsed[0], parsed[-1]
    points = []
    current_year, current_month = first_year, first_month
    while (current_year, current_month) <= (last_year, last_month):
        label = f"{current_year}-{current_month:02d}"
        points.append((label, counts.get(label, 0)))
        current_month += 1
        if current_month > 12:
            current_year, current_month = current_year + 1, 1
    return points


def timeline_labels(points: Sequence[tuple[str, int]], year: str | None = None) -> list[str]:
    """Axis labels: month names for a single year, ``Jan YYYY`` markers otherwise."""
    labels = []
    for label, _ in points:
        label_year, _, month = label.partition("-")
        if year is not None:
            labels.append(calendar.month_abbr[int(month)])
        else:
            labels.append(f"Jan {label_year}" if int(month) == 1 else "")
    return labels


def decade_histogram(books: Iterable[Book]) -> list[tuple[str, int]]:
    counts: Counter = Counter()
    for book in books:
        if book.release_year:
            counts[(book.release_year // 10) * 10] += 1
    return [(f"{decade}s", counts[decade]) for decade in sorted(counts)]


def average_per_month(books: Sequence[Book]) -> float:
    """Finished books divided by the inclusive month span they cover (at least 1)."""
    parsed = [p for p in (_parse_month(b.finished_month) for b in books if b.finished_month) if p]
    if not books or not parsed:
        return 0.0
    (min_year, min_month), (max_year, max_month) = min(parsed), max(parsed)
    span = (max_year - min_year) * 12 + (max_month - min_month) + 1
    return len(books) / max(span, 1)


def compute_stats(books: Sequence[Book], stats_filter: StatsFilter | None = None) -> LibraryStats:
    stats_filter = stats_filter or StatsFilter()
    finished = finished_books(books)
    authors = author_counts(books)
    all_tags = sorted({tag for book in books for tag in book.tags}, key=str.casefold)

    # Filters naming something no longer in the collection fall back to "all".
    author = stats_filter.author if stats_filter.author in dict(authors) else None
    tag = stats_filter.tag if stats_filter.tag in all_tags else None
    year = stats_filter.year or None

    by_author = finished if author is None else [b for b in finished if author in b.authors]
    view = [b for b in by_author if year is None or b.finished_month.startswith(year)]

    counts = tag_counts(view)
    per_year: Counter = Counter(b.finished_year for b in by_author if b.finished_year)

    return LibraryStats(
        total_books=len(books),
        finished_count=len(finished),
        years=finished_years(books),
        authors=authors,
        tags=all_tags,
        view_count=len(view),
        tag_counts=counts,
        most_used_tag=counts[0] if counts else None,
        co_occurring_tags=co_occurring_tags(view, tag) if tag else [],
        timeline=timeline(finished, stats_filter.timeline_year or None),
        decades=decade_histogram(view),
        books_per_year=dict(sorted(per_year.items())),
        books_in_selected_year=len(by_author) if year is None else per_year.get(year, 0),
        average_per_month=average_per_month(by_author),
        applied=StatsFilter(author=author, year=year, tag=tag, timeline_year=stats_filter.timeline_year or None),
    )
