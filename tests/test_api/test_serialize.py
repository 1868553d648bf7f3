from datetime import datetime, timedelta, timezone

from apps.api.core.serialize import (
    relative_time,
    resolve_cover_url,
    serialize_book,
    serialize_page,
    serialize_profile,
    serialize_stats,
)
from onlibrary.library.stats import compute_stats
from onlibrary.library.views import paginate
from onlibrary.records import Book, UserProfile


def test_resolve_cover_url_prefers_openlibrary_for_goodreads_nophoto():
    image_url = "https://s.gr-assets.com/assets/nophoto/book/111x148-bcc042.png"
    isbn13 = "9781400079278"

    result = resolve_cover_url(image_url, isbn13)

    assert result == "https://covers.openlibrary.org/b/isbn/9781400079278-L.jpg"


def test_resolve_cover_url_keeps_non_placeholder_image():
    image_url = "https://images.gr-assets.com/books/1327867963m/117833.jpg"

    assert resolve_cover_url(image_url, "9781400079278") == image_url


def test_resolve_cover_url_falls_back_to_original_when_no_isbn():
    image_url = "https://s.gr-assets.com/assets/nophoto/book/111x148-bcc042.png"

    assert resolve_cover_url(image_url, None) == image_url


def test_resolve_cover_url_builds_cover_when_missing():
    assert resolve_cover_url(None, "0807083690") == "https://covers.openlibrary.org/b/isbn/0807083690-L.jpg"
    assert resolve_cover_url(None, None) is None


def test_relative_time():
    now = datetime.now(timezone.utc)
    assert relative_time(now) == "1m ago"
    assert relative_time(now - timedelta(hours=3, minutes=5)) == "3h ago"
    assert relative_time(now - timedelta(days=2, hours=1)) == "2d ago"
    assert relative_time(now - timedelta(days=15)) == "2w ago"


def test_serialize_book_uses_camel_case():
    book = Book(
        id=7,
        owner_id="alice",
        title="Kindred",
        authors=["Octavia E. Butler", "Someone Else"],
        finished_month="2024-02",
        created_at=datetime(2024, 2, 3, tzinfo=timezone.utc),
    )
    data = serialize_book(book)
    assert data["author"] == "Octavia E. Butler, Someone Else"
    assert data["finishedMonth"] == "2024-02"
    assert data["coverUrl"] is None
    assert data["createdAt"] == "2024-02-03T00:00:00+00:00"


def test_serialize_page():
    books = [Book(id=i, owner_id="alice", title=f"Book {i}") for i in range(1, 6)]
    data = serialize_page(paginate(books, page=2, page_size=2))
    assert [item["id"] for item in data["items"]] == [3, 4]
    assert data["totalPages"] == 3
    assert data["hasPrevious"] and data["hasNext"]
    assert data["pageLinks"] == [1, 2, 3]


def test_serialize_stats_pairs():
    books = [Book(id=1, owner_id="alice", title="A", tags=["SF"], finished_month="2024-01")]
    data = serialize_stats(compute_stats(books))
    assert data["mostUsedTag"] == {"label": "SF", "count": 1}
    assert data["timeline"] == [{"label": "2024-01", "count": 1}]
    assert data["averagePerMonth"] == 1.0


def test_serialize_profile_public_view_hides_settings():
    profile = UserProfile(owner_id="bob", username="bob", display_name="Bob", email="bob@example.com", private_tag="x")
    public = serialize_profile(profile, private=False)
    assert public == {"id": "bob", "handle": "bob", "displayName": "Bob", "avatarUrl": None}
    assert serialize_profile(profile)["privateTag"] == "x"
