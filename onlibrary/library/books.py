"""Single-book edits: the form save and delete paths."""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, Field

from ..context import ReaderContext
from ..errors import NotFoundError, ValidationError
from ..records import MAX_TAGS_PER_BOOK, Book, new_record_id
from ..store.base import DocumentStore
from .tags import TAG_DELIMITER

logger = logging.getLogger(__name__)

_FINISHED_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def _require_non_empty(value: str | None, field_name: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(field_name, f"{field_name} must not be empty")
    return value


def validate_finished_month(value: str | None) -> str | None:
    """Accept ``YYYY-MM`` (or nothing)."""
    value = (value or "").strip()
    if not value:
        return None
    if not _FINISHED_MONTH_RE.match(value):
        raise ValidationError("finished_month", f"finished_month must look like YYYY-MM, got {value!r}")
    return value


def validate_release_year(value: int | str | None) -> int | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        year = int(str(value).strip())
    except ValueError:
        raise ValidationError("release_year", f"release_year must be an integer, got {value!r}") from None
    if year < 0 or year > 9999:
        raise ValidationError("release_year", f"release_year must be between 0 and 9999, got {year}")
    return year


def clean_list(values) -> list[str]:
    """Strip entries, drop blanks and repeats, keep order."""
    cleaned: list[str] = []
    for value in values or ():
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class BookDraft(BaseModel):
    """Fields a reader fills in on the book form."""

    title: str
    authors: list[str] = Field(default_factory=list)
    isbn: str | None = None
    cover_url: str | None = None
    publisher: str | None = None
    tags: list[str] = Field(default_factory=list)
    finished_month: str | None = None
    release_year: int | str | None = None
    notes: str | None = None


class BookService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def save(self, ctx: ReaderContext, draft: BookDraft, book_id: int | None = None) -> Book:
        """Create a book, or replace ``book_id`` when editing an existing one."""
        ctx.require_writable("save your own books")
        title = _require_non_empty(draft.title, "title")
        tags = clean_list(draft.tags)
        if len(tags) > MAX_TAGS_PER_BOOK:
            raise ValidationError("tags", f"A book can have at most {MAX_TAGS_PER_BOOK} tags")
        if any(TAG_DELIMITER in tag for tag in tags):
            raise ValidationError("tags", f"Tags must not contain \"{TAG_DELIMITER}\"")

        if book_id is not None and self.store.get_book(ctx.owner_id, book_id) is None:
            raise NotFoundError(f"Book {book_id} not found")

        book = Book(
            id=book_id if book_id is not None else new_record_id(),
            owner_id=ctx.owner_id,
            title=title,
            authors=clean_list(draft.authors),
            isbn=(draft.isbn or "").strip() or None,
            cover_url=(draft.cover_url or "").strip() or None,
            publisher=(draft.publisher or "").strip() or None,
            tags=tags,
            finished_month=validate_finished_month(draft.finished_month),
            release_year=validate_release_year(draft.release_year),
            notes=(draft.notes or "").strip() or None,
        )
        stored = self.store.write_book(book)
        logger.info("Saved book %s for %s", stored.id, ctx.owner_id)
        return stored

    def delete(self, ctx: ReaderContext, book_id: int) -> None:
        ctx.require_writable("modify books")
        if not self.store.delete_book(ctx.owner_id, book_id):
            raise NotFoundError(f"Book {book_id} not found")
        logger.info("Deleted book %s for %s", book_id, ctx.owner_id)

    def get(self, ctx: ReaderContext, book_id: int) -> Book:
        book = self.store.get_book(ctx.owner_id, book_id)
        if book is None:
            raise NotFoundError(f"Book {book_id} not found")
        return book
