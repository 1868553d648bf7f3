"""Fake HTTP plumbing for the metadata providers."""

from unittest.mock import MagicMock

import pytest
import requests

from onlibrary.metadata import BookCandidate, BookEnrichment


def json_response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


def candidate(title, author="Author", source="Google Books", **kwargs):
    return BookCandidate(source=source, title=title, authors=[author], **kwargs)


class StubProvider:
    """Provider double recording every call it receives."""

    def __init__(self, by_isbn=(), search=(), enrichment=None):
        self._by_isbn = list(by_isbn)
        self._search = list(search)
        self._enrichment = enrichment or BookEnrichment()
        self.calls = []

    def by_isbn(self, isbn):
        self.calls.append(("by_isbn", isbn))
        return list(self._by_isbn)

    def search(self, query, limit=10):
        self.calls.append(("search", query))
        return list(self._search)

    def enrich(self, isbn):
        self.calls.append(("enrich", isbn))
        return self._enrichment
