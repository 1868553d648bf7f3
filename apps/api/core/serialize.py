"""Helpers to serialize onlibrary records to API response dicts."""

from __future__ import annotations

from datetime import datetime, timezone

from onlibrary.db.models import User
from onlibrary.library.social import ActivityItem
from onlibrary.library.stats import LibraryStats
from onlibrary.library.tags import TagBatchResult
from onlibrary.library.views import Page, page_links
from onlibrary.metadata import BookCandidate, openlibrary_cover_url
from onlibrary.records import Book, BookList, FriendRequest, UserProfile


def _is_goodreads_nophoto_url(url: str | None) -> bool:
    if not url:
        return False
    return "gr-assets.com/assets/nophoto" in url.lower()


def resolve_cover_url(cover_url: str | None, isbn: str | None) -> str | None:
    if cover_url and not _is_goodreads_nophoto_url(cover_url):
        return cover_url
    return openlibrary_cover_url(isbn) or cover_url


def _iso(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def relative_time(dt: datetime) -> str:
    now = datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = now - dt
    seconds = int(delta.total_seconds())
    if seconds < 3600:
        m = max(1, seconds // 60)
        return f"{m}m ago"
    if seconds < 86400:
        h = seconds // 3600
        return f"{h}h ago"
    if seconds < 604800:
        d = seconds // 86400
        return f"{d}d ago"
    w = seconds // 604800
    return f"{w}w ago"


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "displayName": user.display_name,
    }


def serialize_book(book: Book) -> dict:
    return {
        "id": book.id,
        "title": book.title,
        "authors": list(book.authors),
        "author": ", ".join(book.authors),
        "isbn": book.isbn,
        "coverUrl": resolve_cover_url(book.cover_url, book.isbn),
        "publisher": book.publisher,
        "tags": list(book.tags),
        "finishedMonth": book.finished_month,
        "releaseYear": book.release_year,
        "notes": book.notes,
        "createdAt": _iso(book.created_at),
        "updatedAt": _iso(book.updated_at),
    }


def serialize_page(page: Page) -> dict:
    return {
        "items": [serialize_book(b) for b in page.items],
        "page": page.page,
        "pageSize": page.page_size,
        "total": page.total,
        "totalPages": page.total_pages,
        "hasPrevious": page.has_previous,
        "hasNext": page.has_next,
        "pageLinks": page_links(page.page, page.total_pages),
    }


def serialize_list(book_list: BookList, books: list[Book] | None = None) -> dict:
    data = {
        "id": book_list.id,
        "name": book_list.name,
        "coverUrl": book_list.cover_url,
        "bookIds": list(book_list.book_ids),
        "createdAt": _iso(book_list.created_at),
        "updatedAt": _iso(book_list.updated_at),
    }
    if books is not None:
        data["books"] = [serialize_book(b) for b in books]
    return data


def serialize_tag_result(result: TagBatchResult) -> dict:
    return {
        "operation": result.operation,
        "matched": result.matched,
        "updated": result.updated,
        "confirmed": result.confirmed,
    }


def _pairs(pairs: list[tuple[str, int]]) -> list[dict]:
    return [{"label": label, "count": count} for label, count in pairs]


def serialize_stats(stats: LibraryStats) -> dict:
    return {
        "totalBooks": stats.total_books,
        "finishedCount": stats.finished_count,
        "years": stats.years,
        "authors": _pairs(stats.authors),
        "tags": stats.tags,
        "viewCount": stats.view_count,
        "topTags": _pairs(stats.top_tags),
        "mostUsedTag": _pairs([stats.most_used_tag])[0] if stats.most_used_tag else None,
        "coOccurringTags": _pairs(stats.co_occurring_tags),
        "timeline": _pairs(stats.timeline),
        "decades": _pairs(stats.decades),
        "booksPerYear": stats.books_per_year,
        "booksInSelectedYear": stats.books_in_selected_year,
        "averagePerMonth": round(stats.average_per_month, 2),
        "filters": {
            "author": stats.applied.author,
            "year": stats.applied.year,
            "tag": stats.applied.tag,
            "timelineYear": stats.applied.timeline_year,
        },
    }


def serialize_profile(profile: UserProfile, *, private: bool = True) -> dict:
    data = {
        "id": profile.owner_id,
        "handle": profile.username,
        "displayName": profile.display_name,
        "avatarUrl": profile.profile_image_url,
    }
    if private:
        data.update({
            "email": profile.email,
            "showBooksToFriends": profile.show_books_to_friends,
            "showListsToFriends": profile.show_lists_to_friends,
            "privateTag": profile.private_tag,
            "themePreference": profile.theme_preference,
        })
    return data


def serialize_request(request: FriendRequest) -> dict:
    return {
        "id": request.id,
        "fromUserId": request.from_user_id,
        "fromUsername": request.from_username,
        "toUserId": request.to_user_id,
        "toUsername": request.to_username,
        "status": request.status,
        "createdAt": _iso(request.created_at),
    }


def serialize_activity(item: ActivityItem) -> dict:
    return {
        "user": {"id": item.owner_id, "handle": item.username, "displayName": item.display_name},
        "action": item.action,
        "book": serialize_book(item.book),
        "timestamp": relative_time(item.timestamp),
    }


def serialize_candidate(candidate: BookCandidate) -> dict:
    return {
        "source": candidate.source,
        "title": candidate.title,
        "authors": list(candidate.authors),
        "publisher": candidate.publisher,
        "releaseYear": candidate.release_year,
        "isbn": candidate.isbn,
        "coverUrl": candidate.cover_url or None,
        "description": candidate.description,
    }
