"""Book metadata providers: Google Books and OpenLibrary.

Each provider returns plain ``BookCandidate`` values and never raises for
network, HTTP or JSON problems; failures are logged and yield no results.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import requests
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

GOOGLE_BOOKS_URL = "https://www.googleapis.com/books/v1/volumes"
OPENLIBRARY_BOOKS_URL = "https://openlibrary.org/api/books"
OPENLIBRARY_SEARCH_URL = "https://openlibrary.org/search.json"
OPENLIBRARY_ISBN_URL = "https://openlibrary.org/isbn/{isbn}.json"
OPENLIBRARY_COVER_URL = "https://covers.openlibrary.org/b/isbn/{isbn}-{size}.jpg"

_YEAR_RE = re.compile(r"\d{4}")


class BookCandidate(BaseModel):
    source: str
    title: str = ""
    authors: list[str] = Field(default_factory=list)
    publisher: str = ""
    release_year: str = ""
    isbn: str = ""
    cover_url: str = ""
    description: str = ""

    @property
    def identity(self) -> tuple[str, str]:
        return self.title.lower(), (self.authors[0] if self.authors else "").lower()


class BookEnrichment(BaseModel):
    cover_url: str | None = None
    publisher: str | None = None
    release_year: str | None = None


def openlibrary_cover_url(isbn: str | None, size: str = "L") -> str | None:
    if not isbn:
        return None
    normalized = "".join(ch for ch in isbn if ch.isdigit() or ch.upper() == "X")
    if not normalized:
        return None
    return OPENLIBRARY_COVER_URL.format(isbn=normalized, size=size)


def _https(url: str | None) -> str:
    return (url or "").replace("http:", "https:", 1)


def _year(value: Any) -> str:
    match = _YEAR_RE.search(str(value or ""))
    return match.group(0) if match else ""


class _Provider:
    name = "provider"

    def __init__(self, session: requests.Session | None = None, timeout: float = 8.0):
        self.session = session or requests.Session()
        self.timeout = timeout

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("%s request to %s failed: %s", self.name, url, e)
            return None


class GoogleBooksProvider(_Provider):
    name = "Google Books"

    def __init__(self, session: requests.Session | None = None, timeout: float = 8.0, api_key: str | None = None):
        super().__init__(session, timeout)
        self.api_key = api_key

    def _volumes(self, query: str, max_results: int | None = None) -> list[dict]:
        params: dict[str, Any] = {"q": query}
        if max_results:
            params["maxResults"] = max_results
        if self.api_key:
            params["key"] = self.api_key
        data = self._get_json(GOOGLE_BOOKS_URL, params)
        if not isinstance(data, dict):
            return []
        items = data.get("items") or []
        return [item.get("volumeInfo") or {} for item in items if isinstance(item, dict)]

    def _candidate(self, info: dict, source: str, fallback_isbn: str = "") -> BookCandidate:
        identifiers = info.get("industryIdentifiers") or []
        isbn = identifiers[0].get("identifier", "") if identifiers else ""
        return BookCandidate(
            source=source,
            title=info.get("title") or "",
            authors=list(info.get("authors") or []),
            publisher=info.get("publisher") or "",
            release_year=str(info.get("publishedDate") or "").split("-")[0],
            isbn=isbn or fallback_isbn,
            cover_url=_https((info.get("imageLinks") or {}).get("thumbnail")),
            description=info.get("description") or "",
        )

    def by_isbn(self, isbn: str) -> list[BookCandidate]:
        return [self._candidate(info, "Google Books (ISBN)", isbn) for info in self._volumes(f"isbn:{isbn}")]

    def search(self, query: str, limit: int = 10) -> list[BookCandidate]:
        return [self._candidate(info, "Google Books") for info in self._volumes(query, limit)]

    def enrich(self, isbn: str) -> BookEnrichment:
        volumes = self._volumes(f"isbn:{isbn}")
        if not volumes:
            return BookEnrichment()
        info = volumes[0]
        return BookEnrichment(
            cover_url=_https((info.get("imageLinks") or {}).get("thumbnail")) or None,
            publisher=info.get("publisher") or None,
            release_year=_year(info.get("publishedDate")) or None,
        )


class OpenLibraryProvider(_Provider):
    name = "OpenLibrary"

    def by_isbn(self, isbn: str) -> list[BookCandidate]:
        data = self._get_json(
            OPENLIBRARY_BOOKS_URL,
            {"bibkeys": f"ISBN:{isbn}", "format": "json", "jscmd": "data"},
        )
        if not isinstance(data, dict):
            return []
        book = data.get(f"ISBN:{isbn}")
        if not isinstance(book, dict):
            return []
        publishers = book.get("publishers") or []
        cover = book.get("cover") or {}
        return [
            BookCandidate(
                source="OpenLibrary (ISBN)",
                title=book.get("title") or "",
                authors=[a.get("name", "") for a in book.get("authors") or [] if isinstance(a, dict)],
                publisher=publishers[0].get("name", "") if publishers and isinstance(publishers[0], dict) else "",
                release_year=_year(book.get("publish_date")),
                isbn=isbn,
                cover_url=cover.get("medium") or cover.get("large") or "",
            )
        ]

    def search(self, query: str, limit: int = 10) -> list[BookCandidate]:
        data = self._get_json(OPENLIBRARY_SEARCH_URL, {"q": query, "limit": limit})
        if not isinstance(data, dict):
            return []
        candidates = []
        for doc in data.get("docs") or []:
            isbn = (doc.get("isbn") or [""])[0]
            candidates.append(
                BookCandidate(
                    source="OpenLibrary",
                    title=doc.get("title") or "",
                    authors=list(doc.get("author_name") or []),
                    publisher=(doc.get("publisher") or [""])[0],
                    release_year=str(doc.get("first_publish_year") or ""),
                    isbn=isbn,
                    cover_url=openlibrary_cover_url(isbn, "M") or "",
                )
            )
        return candidates

    def enrich(self, isbn: str) -> BookEnrichment:
        data = self._get_json(OPENLIBRARY_ISBN_URL.format(isbn=isbn))
        data = data if isinstance(data, dict) else {}
        publishers = data.get("publishers") or []
        return BookEnrichment(
            cover_url=openlibrary_cover_url(isbn),
            publisher=str(publishers[0]) if publishers else None,
            release_year=_year(data.get("publish_date")) or None,
        )
