"""Bundled library shown to demo sessions."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from ..context import DEMO_OWNER_ID
from ..records import Book, BookList, UserProfile

_COVER_BASE = "https://images-na.ssl-images-amazon.com/images/S/compressed.photo.goodreads.com/books"

# (title, author, cover path, publisher, tags, finished month, release year, notes)
_SAMPLE_BOOKS = [
    (
        "The Midnight Library", "Matt Haig", "1602190253i/52578297.jpg", "Canongate Books",
        ["Fiction", "Philosophy", "Britain"], "2024-03", 2020,
        "A beautiful exploration of life's possibilities and the paths we choose.",
    ),
    (
        "Dune", "Frank Herbert", "1555447414i/44767458.jpg", "Chilton Books",
        ["Science Fiction", "Epic", "America"], "2024-02", 1965,
        "An epic space opera with incredible world-building and political intrigue.",
    ),
    (
        "Klara and the Sun", "Kazuo Ishiguro", "1603206535i/54120408.jpg", "Faber & Faber",
        ["Science Fiction", "Literary Fiction", "Japan", "Britain"], "2024-01", 2021,
        "A touching story about artificial intelligence and human connection.",
    ),
    (
        "The Seven Husbands of Evelyn Hugo", "Taylor Jenkins Reid", "1551393571i/32620332.jpg", "Atria Books",
        ["Historical Fiction", "Romance", "America"], "2023-12", 2017,
        "A captivating story of old Hollywood glamour and hidden truths.",
    ),
    (
        "Norwegian Wood", "Haruki Murakami", "1386924361i/11297.jpg", "Kodansha International",
        ["Literary Fiction", "Romance", "Japan"], "2023-11", 1987,
        "A melancholic coming-of-age story set in 1960s Tokyo.",
    ),
    (
        "The Handmaid's Tale", "Margaret Atwood", "1578028274i/38447.jpg", "McClelland & Stewart",
        ["Dystopian", "Feminist", "Canada"], "2023-10", 1985,
        "A chilling dystopian vision that feels increasingly relevant.",
    ),
    (
        "Educated", "Tara Westover", "1506026635i/35133922.jpg", "Random House",
        ["Memoir", "Education", "America"], "2023-09", 2018,
        "A powerful memoir about education, family, and finding your own path.",
    ),
    (
        "Circe", "Madeline Miller", "1565909496i/35959740.jpg", "Little, Brown and Company",
        ["Mythology", "Fantasy", "Greece"], "2023-08", 2018,
        "Greek mythology retold with beautiful prose and feminist perspective.",
    ),
    (
        "The Alchemist", "Paulo Coelho", "1654371463i/18144590.jpg", "HarperOne",
        ["Philosophy", "Adventure", "Brazil"], "2023-07", 1988,
        "A philosophical tale about following your dreams and personal legend.",
    ),
    (
        "Where the Crawdads Sing", "Delia Owens", "1582135294i/36809135.jpg", "G.P. Putnam's Sons",
        ["Mystery", "Nature", "America"], "2023-06", 2018,
        "A haunting story of isolation, resilience, and the natural world.",
    ),
    (
        "1984", "George Orwell", "1532714506i/40961427.jpg", "Secker & Warburg",
        ["Dystopian", "Political", "Britain"], "2023-05", 1949,
        "The ultimate dystopian warning about surveillance and totalitarianism.",
    ),
    (
        "The Kite Runner", "Khaled Hosseini", "1579036753i/77203.jpg", "Riverhead Books",
        ["Historical Fiction", "Friendship", "Afghanistan"], "2023-04", 2003,
        "A powerful story of friendship, guilt, and redemption set in Afghanistan.",
    ),
]

_SAMPLE_LISTS = [
    ("Sci-Fi Favorites", [2, 3, 6]),
    ("Must-Read Classics", [11, 6, 5]),
    ("Recent Discoveries", [1, 4, 8, 10]),
    ("International Authors", [3, 5, 9, 12]),
]

_EPOCH = datetime(2024, 4, 1, tzinfo=timezone.utc)


def sample_books(owner_id: str = DEMO_OWNER_ID) -> list[Book]:
    books = []
    for index, (title, author, cover, publisher, tags, finished, year, notes) in enumerate(_SAMPLE_BOOKS, start=1):
        stamp = _EPOCH + timedelta(minutes=index)
        books.append(
            Book(
                id=index,
                owner_id=owner_id,
                title=title,
                authors=[author],
                cover_url=f"{_COVER_BASE}/{cover}",
                publisher=publisher,
                tags=tags,
                finished_month=finished,
                release_year=year,
                notes=notes,
                created_at=stamp,
                updated_at=stamp,
            )
        )
    return books


def sample_lists(owner_id: str = DEMO_OWNER_ID) -> list[BookList]:
    return [
        BookList(
            id=index,
            owner_id=owner_id,
            name=name,
            book_ids=book_ids,
            created_at=_EPOCH + timedelta(minutes=index),
            updated_at=_EPOCH + timedelta(minutes=index),
        )
        for index, (name, book_ids) in enumerate(_SAMPLE_LISTS, start=1)
    ]


def sample_profile(owner_id: str = DEMO_OWNER_ID) -> UserProfile:
    return UserProfile(
        owner_id=owner_id,
        username="demo_reader",
        display_name="Demo Reader",
        created_at=_EPOCH,
        updated_at=_EPOCH,
    )
