"""API test client over an in-memory SQLite store and a stubbed metadata lookup."""

import pytest
from fastapi.testclient import TestClient

from apps.api.main import create_app
from onlibrary.metadata import BookEnrichment, MetadataLookup
from onlibrary.store import SqlDocumentStore
from tests.test_metadata.conftest import StubProvider, candidate

DEMO_HEADERS = {"X-Demo-Mode": "1"}


@pytest.fixture
def store():
    return SqlDocumentStore.from_url("sqlite://", create_tables=True)


@pytest.fixture
def lookup():
    google = StubProvider(
        search=[candidate("Kindred", "Octavia E. Butler", isbn="0807083690")],
        enrichment=BookEnrichment(cover_url="https://covers/k.jpg", publisher="Doubleday", release_year="1979"),
    )
    return MetadataLookup(google, StubProvider())


@pytest.fixture
def client(store, lookup):
    app = create_app(store=store, lookup_service=lookup)
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="alice@example.com", username="alice", password="secret123", display_name=None):
    """Create an account and return bearer auth headers for it."""
    display_name = display_name or (username or email.split("@")[0]).title()
    body = {"email": email, "display_name": display_name, "password": password}
    if username is not None:
        body["username"] = username
    response = client.post("/auth/register", json=body)
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth(client):
    return register(client)


def add_book(client, headers, title="Dune", **fields):
    response = client.post("/books", json={"title": title, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()
