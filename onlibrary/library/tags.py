"""Collection-wide tag edits.

The pure helpers compute a book's new tag list; ``TagManager`` finds the
books whose tags actually change and writes them concurrently. Writes are
independent: when one fails, writes that have not started are cancelled and
the ones already committed stay committed.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from ..context import ReaderContext
from ..errors import TagBatchError, ValidationError
from ..records import Book
from ..store.base import DocumentStore

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str, int], bool]

# Tags are exported comma-separated, so a tag may not contain one.
TAG_DELIMITER = ","


@dataclass(frozen=True)
class TagBatchResult:
    operation: str
    matched: int
    updated: int
    confirmed: bool = True


def clean_tag(value: str | None, field: str = "tag") -> str:
    tag = (value or "").strip()
    if not tag:
        raise ValidationError(field, f"{field} must not be empty")
    return tag


def clean_new_tag(value: str | None, field: str = "tag") -> str:
    """Like ``clean_tag``, for tags about to be written to a book."""
    tag = clean_tag(value, field)
    if TAG_DELIMITER in tag:
        raise ValidationError(field, f"{field} must not contain \"{TAG_DELIMITER}\"")
    return tag


def _clean_many(values: Iterable[str] | None, field: str, clean=clean_tag) -> list[str]:
    cleaned: list[str] = []
    for value in values or ():
        tag = clean(value, field)
        if tag not in cleaned:
            cleaned.append(tag)
    if not cleaned:
        raise ValidationError(field, f"{field} must contain at least one tag")
    return cleaned


def rename_tag(tags: Sequence[str], old_tag: str, new_tag: str) -> list[str]:
    """Replace ``old_tag`` in place; when ``new_tag`` is already there, just drop ``old_tag``."""
    if old_tag == new_tag or old_tag not in tags:
        return list(tags)
    if new_tag in tags:
        return [tag for tag in tags if tag != old_tag]
    return [new_tag if tag == old_tag else tag for tag in tags]


def remove_tags(tags: Sequence[str], to_remove: Iterable[str]) -> list[str]:
    dropped = set(to_remove)
    return [tag for tag in tags if tag not in dropped]


def add_tags(tags: Sequence[str], to_add: Iterable[str]) -> list[str]:
    result = list(tags)
    for tag in to_add:
        if tag not in result:
            result.append(tag)
    return result


def merge_tags(tags: Sequence[str], sources: Iterable[str], target: str) -> list[str]:
    sources = set(sources)
    if not sources.intersection(tags):
        return list(tags)
    return add_tags(remove_tags(tags, sources), [target])


def existing_tags(books: Iterable[Book]) -> list[str]:
    """Sorted unique tags across ``books``."""
    return sorted({tag for book in books for tag in book.tags})


def _changed(books: Iterable[Book], transform: Callable[[list[str]], list[str]]) -> list[Book]:
    updates = []
    for book in books:
        tags = transform(list(book.tags))
        if tags != list(book.tags):
            updates.append(book.model_copy(update={"tags": tags}))
    return updates


class TagManager:
    def __init__(self, store: DocumentStore, max_workers: int = 8):
        self.store = store
        self.max_workers = max(1, max_workers)

    def rename(self, ctx: ReaderContext, books: Sequence[Book], old_tag: str, new_tag: str) -> TagBatchResult:
        ctx.require_writable("manage tags")
        old_tag = clean_tag(old_tag, "old_tag")
        new_tag = clean_new_tag(new_tag, "new_tag")
        matched = [b for b in books if b.has_tag(old_tag)]
        updates = _changed(matched, lambda tags: rename_tag(tags, old_tag, new_tag))
        result = self._run("rename", matched, updates)
        logger.info("Renamed tag %r to %r on %d books", old_tag, new_tag, result.updated)
        return result

    def delete(
        self,
        ctx: ReaderContext,
        books: Sequence[Book],
        tag: str,
        confirm: ConfirmCallback,
    ) -> TagBatchResult:
        ctx.require_writable("manage tags")
        tag = clean_tag(tag)
        matched = [b for b in books if b.has_tag(tag)]
        if not confirm(tag, len(matched)):
            return TagBatchResult("delete", len(matched), 0, confirmed=False)
        updates = _changed(matched, lambda tags: remove_tags(tags, [tag]))
        result = self._run("delete", matched, updates)
        logger.info("Deleted tag %r from %d books", tag, result.updated)
        return result

    def merge(
        self, ctx: ReaderContext, books: Sequence[Book], source_tags: Iterable[str], target_tag: str
    ) -> TagBatchResult:
        ctx.require_writable("manage tags")
        sources = _clean_many(source_tags, "source_tags")
        target = clean_new_tag(target_tag, "target_tag")
        matched = [b for b in books if any(b.has_tag(tag) for tag in sources)]
        updates = _changed(matched, lambda tags: merge_tags(tags, sources, target))
        result = self._run("merge", matched, updates)
        logger.info("Merged %s into %r on %d books", sources, target, result.updated)
        return result

    def conditional_add(
        self, ctx: ReaderContext, books: Sequence[Book], condition_tag: str, tag_to_add: str
    ) -> TagBatchResult:
        ctx.require_writable("manage tags")
        condition = clean_tag(condition_tag, "condition_tag")
        addition = clean_new_tag(tag_to_add, "tag_to_add")
        matched = [b for b in books if b.has_tag(condition)]
        updates = _changed(matched, lambda tags: add_tags(tags, [addition]))
        return self._run("conditional_add", matched, updates)

    def add_to_selected(
        self, ctx: ReaderContext, books: Sequence[Book], book_ids: Iterable[int], tags: Iterable[str]
    ) -> TagBatchResult:
        ctx.require_writable("manage tags")
        additions = _clean_many(tags, "tags", clean_new_tag)
        matched = self._selected(books, book_ids)
        updates = _changed(matched, lambda current: add_tags(current, additions))
        return self._run("add_to_selected", matched, updates)

    def remove_from_selected(
        self, ctx: ReaderContext, books: Sequence[Book], book_ids: Iterable[int], tags: Iterable[str]
    ) -> TagBatchResult:
        ctx.require_writable("manage tags")
        removals = _clean_many(tags, "tags")
        matched = self._selected(books, book_ids)
        updates = _changed(matched, lambda current: remove_tags(current, removals))
        return self._run("remove_from_selected", matched, updates)

    @staticmethod
    def _selected(books: Sequence[Book], book_ids: Iterable[int]) -> list[Book]:
        wanted = set(book_ids)
        return [b for b in books if b.id in wanted]

    def _run(self, operation: str, matched: Sequence[Book], updates: list[Book]) -> TagBatchResult:
        if not updates:
            return TagBatchResult(operation, len(matched), 0)
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(updates)),
            thread_name_prefix=f"tags-{operation}",
        )
        try:
            futures = [executor.submit(self.store.write_book, book) for book in updates]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            failure = next((f.exception() for f in done if f.exception() is not None), None)
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        if failure is not None:
            committed = sum(1 for f in futures if not f.cancelled() and f.exception() is None)
            logger.error(
                "Tag %s aborted after %d of %d writes: %s", operation, committed, len(updates), failure
            )
            raise TagBatchError(operation, failure, committed, len(updates)) from failure
        return TagBatchResult(operation, len(matched), len(updates))
