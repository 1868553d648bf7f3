from __future__ import annotations

import json
import queue

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import StreamingResponse

from onlibrary.context import ReaderContext
from onlibrary.library.books import BookService
from onlibrary.library.tags import existing_tags
from onlibrary.library.views import BrowseState
from onlibrary.store import DocumentStore, LibraryMirror

from ..core.config import settings
from ..core.deps import get_mirror, get_reader_context, get_reader_store
from ..core.serialize import serialize_book, serialize_page
from ..schemas.book import BookRequest

router = APIRouter(prefix="/books", tags=["books"])

STREAM_KEEPALIVE_SECONDS = 15


@router.get("")
def browse_books(
    q: str = "",
    sort: str = "newest",
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=500),
    mirror: LibraryMirror = Depends(get_mirror),
):
    state = BrowseState(query=q, sort=sort, page=page, page_size=page_size or settings.PAGE_SIZE)
    return serialize_page(state.apply(mirror.books))


@router.get("/tags")
def list_tags(mirror: LibraryMirror = Depends(get_mirror)):
    return {"tags": existing_tags(mirror.books)}


@router.get("/stream")
def stream_books(
    limit: int | None = Query(None, ge=1),
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
):
    """Server-sent events: the whole collection now, then again after every change."""
    updates: queue.Queue = queue.Queue()
    subscription = store.subscribe_books(ctx.owner_id, updates.put)

    def events():
        sent = 0
        try:
            while limit is None or sent < limit:
                try:
                    books = updates.get(timeout=STREAM_KEEPALIVE_SECONDS)
                except queue.Empty:
                    yield ": keepalive\n\n"
                    continue
                yield f"data: {json.dumps([serialize_book(b) for b in books])}\n\n"
                sent += 1
        finally:
            subscription.close()

    return StreamingResponse(events(), media_type="text/event-stream")


@router.get("/{book_id}")
def get_book(
    book_id: int,
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
):
    return serialize_book(BookService(store).get(ctx, book_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_book(
    body: BookRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
):
    return serialize_book(BookService(store).save(ctx, body))


@router.put("/{book_id}")
def update_book(
    book_id: int,
    body: BookRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
):
    return serialize_book(BookService(store).save(ctx, body, book_id=book_id))


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    book_id: int,
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
):
    BookService(store).delete(ctx, book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
