from __future__ import annotations

import logging
import re
import threading
import time

import requests
from cachetools import TTLCache

from .providers import BookCandidate, BookEnrichment, GoogleBooksProvider, OpenLibraryProvider

logger = logging.getLogger(__name__)

_ISBN_RE = re.compile(r"^[\d-]{10,17}$")

ISBN_ENOUGH = 5
SEARCH_ENOUGH = 10


def is_isbn(query: str) -> bool:
    return bool(_ISBN_RE.match(re.sub(r"\s", "", query or "")))


def clean_isbn(query: str) -> str:
    return re.sub(r"[-\s]", "", query or "")


def format_author_name(name: str) -> str:
    """Convert ``First Middle Last`` to ``Last, First Middle``; single names pass through."""
    if not name or not name.strip():
        return ""
    parts = name.split()
    if len(parts) == 1:
        return name
    return f"{parts[-1]}, {' '.join(parts[:-1])}"


def dedupe(candidates: list[BookCandidate]) -> list[BookCandidate]:
    seen: set[tuple[str, str]] = set()
    unique = []
    for candidate in candidates:
        if candidate.identity not in seen:
            seen.add(candidate.identity)
            unique.append(candidate)
    return unique


class MetadataLookup:
    """Looks books up by title, author or ISBN across both providers.

    Results are cached per query for ``cache_ttl`` seconds. An empty result,
    which is what every provider failing looks like, is only kept for
    ``failure_ttl`` seconds.
    """

    def __init__(
        self,
        google: GoogleBooksProvider | None = None,
        openlibrary: OpenLibraryProvider | None = None,
        cache_ttl: float = 1800,
        cache_size: int = 500,
        failure_ttl: float = 60,
        timer=time.monotonic,
    ):
        self.google = google or GoogleBooksProvider()
        self.openlibrary = openlibrary or OpenLibraryProvider()
        self._search_cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl, timer=timer)
        self._enrich_cache: TTLCache = TTLCache(maxsize=cache_size, ttl=cache_ttl, timer=timer)
        self._failure_cache: TTLCache = TTLCache(maxsize=cache_size, ttl=failure_ttl, timer=timer)
        self._lock = threading.Lock()

    @classmethod
    def from_settings(
        cls,
        timeout: float = 8.0,
        cache_ttl: float = 1800,
        google_api_key: str | None = None,
        session: requests.Session | None = None,
    ) -> "MetadataLookup":
        session = session or requests.Session()
        return cls(
            google=GoogleBooksProvider(session, timeout, api_key=google_api_key),
            openlibrary=OpenLibraryProvider(session, timeout),
            cache_ttl=cache_ttl,
        )

    def search(self, query: str) -> list[BookCandidate]:
        query = (query or "").strip()
        if not query:
            return []
        with self._lock:
            cached = self._search_cache.get(query, self._failure_cache.get(("search", query)))
        if cached is not None:
            return list(cached)

        results: list[BookCandidate] = []
        isbn_query = is_isbn(query)
        isbn = clean_isbn(query)
        if isbn_query:
            results.extend(self.google.by_isbn(isbn))
            results.extend(self.openlibrary.by_isbn(isbn))
        if len(results) < ISBN_ENOUGH:
            results.extend(self.google.search(isbn if isbn_query else query))
        if len(results) < SEARCH_ENOUGH and not isbn_query:
            results.extend(self.openlibrary.search(query))

        unique = dedupe(results)
        logger.debug("Metadata search %r: %d results (%d before de-duplication)", query, len(unique), len(results))
        with self._lock:
            if unique:
                self._search_cache[query] = unique
            else:
                self._failure_cache[("search", query)] = unique
        return list(unique)

    def enrich(self, isbn: str) -> BookEnrichment:
        isbn = clean_isbn(isbn)
        if not isbn:
            return BookEnrichment()
        with self._lock:
            cached = self._enrich_cache.get(isbn, self._failure_cache.get(("enrich", isbn)))
        if cached is not None:
            return cached

        found = self.google.enrich(isbn)
        if not (found.cover_url and found.publisher and found.release_year):
            fallback = self.openlibrary.enrich(isbn)
            found = BookEnrichment(
                cover_url=found.cover_url or fallback.cover_url,
                publisher=found.publisher or fallback.publisher,
                release_year=found.release_year or fallback.release_year,
            )
        with self._lock:
            if found.cover_url or found.publisher or found.release_year:
                self._enrich_cache[isbn] = found
            else:
                self._failure_cache[("enrich", isbn)] = found
        return found

    def clear_cache(self) -> None:
        with self._lock:
            self._search_cache.clear()
            self._enrich_cache.clear()
            self._failure_cache.clear()


def apply_candidate(candidate: BookCandidate) -> dict:
    """Form fields for a chosen search result, with authors as "Last, First"."""
    return {
        "title": candidate.title,
        "authors": [format_author_name(a) for a in candidate.authors] or [""],
        "isbn": candidate.isbn,
        "cover_url": candidate.cover_url or None,
        "publisher": candidate.publisher,
        "release_year": candidate.release_year,
    }
