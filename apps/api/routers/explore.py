from fastapi import APIRouter, Depends, Query

from onlibrary.context import ReaderContext
from onlibrary.library.explore import RECENT_LIMIT, SIMILAR_LIMIT, ExploreService
from onlibrary.store import DocumentStore, LibraryMirror

from ..core.deps import get_mirror, get_reader_context, get_reader_store
from ..core.serialize import serialize_book

router = APIRouter(prefix="/explore", tags=["explore"])


@router.get("/recent")
def recent_books(
    q: str = "",
    limit: int = Query(RECENT_LIMIT, ge=1, le=500),
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
    mirror: LibraryMirror = Depends(get_mirror),
):
    return [serialize_book(b) for b in ExploreService(store).recent(ctx, mirror.books, q, limit)]


@router.get("/similar/{book_id}")
def similar_books(
    book_id: int,
    limit: int = Query(SIMILAR_LIMIT, ge=1, le=200),
    ctx: ReaderContext = Depends(get_reader_context),
    store: DocumentStore = Depends(get_reader_store),
    mirror: LibraryMirror = Depends(get_mirror),
):
    book = mirror.book(book_id)
    return [serialize_book(b) for b in ExploreService(store).similar(ctx, book, mirror.books, limit)]
