"""CSV export and import of a reader's library.

Two input layouts are understood: the file this module exports, and the
Goodreads export (detected by its ``Book Id`` / ``My Rating`` columns).
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import polars as pl

from ..context import ReaderContext
from ..errors import LibraryError, ValidationError
from ..records import Book, new_record_id
from ..store.base import DocumentStore
from .books import clean_list, validate_finished_month, validate_release_year

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "Title",
    "Author",
    "ISBN",
    "Publisher",
    "Release Year",
    "Tags",
    "Finished Month",
    "Finished Year",
    "Notes",
    "Date Added",
]
AUTHOR_SEPARATOR = "; "
TAG_SEPARATOR = ", "
UNTITLED = "Untitled"
UNKNOWN_AUTHOR = "Unknown Author"

_DATE_READ_RE = re.compile(r"^(\d{4})[-/](\d{1,2})")


@dataclass(frozen=True)
class ImportReport:
    total: int
    success: int
    failed: int


def books_to_frame(books: Sequence[Book]) -> pl.DataFrame:
    rows = {column: [] for column in EXPORT_COLUMNS}
    for book in books:
        rows["Title"].append(book.title)
        rows["Author"].append(AUTHOR_SEPARATOR.join(book.authors))
        rows["ISBN"].append(book.isbn or "")
        rows["Publisher"].append(book.publisher or "")
        rows["Release Year"].append(str(book.release_year) if book.release_year is not None else "")
        rows["Tags"].append(TAG_SEPARATOR.join(book.tags))
        rows["Finished Month"].append(book.finished_month or "")
        rows["Finished Year"].append(book.finished_year or "")
        rows["Notes"].append(book.notes or "")
        rows["Date Added"].append(book.created_at.date().isoformat() if book.created_at else "")
    return pl.DataFrame(rows, schema={column: pl.Utf8 for column in EXPORT_COLUMNS})


def export_csv(books: Sequence[Book]) -> str:
    return books_to_frame(books).write_csv()


def read_rows(data: bytes) -> tuple[list[str], list[tuple]]:
    """Header and non-blank data rows, every cell as text."""
    try:
        frame = pl.read_csv(
            io.BytesIO(data),
            infer_schema_length=0,
            truncate_ragged_lines=True,
        )
    except pl.exceptions.NoDataError:
        raise ValidationError("file", "CSV file is empty or invalid.") from None
    except pl.exceptions.PolarsError as exc:
        raise ValidationError("file", f"Could not read CSV: {exc}") from exc
    rows = [row for row in frame.rows() if any((cell or "").strip() for cell in row)]
    return frame.columns, rows


def is_legacy_header(columns: Sequence[str]) -> bool:
    header = ",".join(columns).lower()
    return "book id" in header or "my rating" in header


def _cell(row: tuple, index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def _clean_isbn(value: str) -> str | None:
    # Goodreads wraps ISBNs as ="0385472579".
    value = value.replace("=", "").replace('"', "").strip()
    return value or None


def _split_authors(value: str) -> list[str]:
    # Names are stored as "Last, First", so only the export separator splits.
    return clean_list(value.split(AUTHOR_SEPARATOR.strip())) if value else []


def _finished_from_date_read(value: str) -> str | None:
    if not value:
        return None
    match = _DATE_READ_RE.match(value)
    if not match:
        raise ValidationError("finished_month", f"Unrecognised date {value!r}")
    return validate_finished_month(f"{match.group(1)}-{int(match.group(2)):02d}")


def legacy_row_to_book(row: tuple, owner_id: str) -> Book:
    rating = _cell(row, 4)
    author = _cell(row, 2)
    return Book(
        id=new_record_id(),
        owner_id=owner_id,
        title=_cell(row, 1) or UNTITLED,
        authors=[author] if author else [UNKNOWN_AUTHOR],
        isbn=_clean_isbn(_cell(row, 3)),
        publisher=_cell(row, 6) or None,
        release_year=validate_release_year(_cell(row, 7)),
        notes=f"Rating: {rating}/5" if rating else None,
        finished_month=_finished_from_date_read(_cell(row, 8)),
    )


def native_row_to_book(row: tuple, owner_id: str) -> Book:
    tags = _cell(row, 5)
    return Book(
        id=new_record_id(),
        owner_id=owner_id,
        title=_cell(row, 0) or UNTITLED,
        authors=_split_authors(_cell(row, 1)) or [UNKNOWN_AUTHOR],
        isbn=_clean_isbn(_cell(row, 2)),
        publisher=_cell(row, 3) or None,
        release_year=validate_release_year(_cell(row, 4)),
        tags=clean_list(tags.split(TAG_SEPARATOR.strip())) if tags else [],
        finished_month=validate_finished_month(_cell(row, 6)),
        notes=_cell(row, 8) or None,
    )


class TransferService:
    def __init__(self, store: DocumentStore):
        self.store = store

    def export_csv(self, ctx: ReaderContext) -> str:
        return export_csv(self.store.list_books(ctx.owner_id))

    def import_file(self, ctx: ReaderContext, path: str | Path) -> ImportReport:
        return self.import_csv(ctx, Path(path).read_bytes())

    def import_csv(self, ctx: ReaderContext, data: bytes | str) -> ImportReport:
        """Add every data row as a new book; bad rows are counted, not raised."""
        ctx.require_writable("import books")
        if isinstance(data, str):
            data = data.encode("utf-8")
        columns, rows = read_rows(data)
        if not rows:
            raise ValidationError("file", "CSV file is empty or invalid.")
        to_book = legacy_row_to_book if is_legacy_header(columns) else native_row_to_book

        success = failed = 0
        for line, row in enumerate(rows, start=2):
            try:
                self.store.write_book(to_book(row, ctx.owner_id))
            except (LibraryError, ValueError) as exc:
                logger.warning("Failed to import line %d: %s", line, exc)
                failed += 1
            else:
                success += 1
        logger.info("Imported %d of %d books for %s (%d failed)", success, len(rows), ctx.owner_id, failed)
        return ImportReport(total=len(rows), success=success, failed=failed)
