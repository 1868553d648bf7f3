from fastapi import APIRouter, Depends

from onlibrary.context import ReaderContext
from onlibrary.metadata import BookCandidate, MetadataLookup, apply_candidate

from ..core.deps import get_lookup, get_reader_context
from ..core.serialize import serialize_candidate

router = APIRouter(prefix="/lookup", tags=["lookup"])


@router.get("/search")
def search(
    q: str,
    ctx: ReaderContext = Depends(get_reader_context),
    lookup: MetadataLookup = Depends(get_lookup),
):
    """Title, author or ISBN search across Google Books and OpenLibrary."""
    return [serialize_candidate(c) for c in lookup.search(q)]


@router.get("/enrich/{isbn}")
def enrich(
    isbn: str,
    ctx: ReaderContext = Depends(get_reader_context),
    lookup: MetadataLookup = Depends(get_lookup),
):
    found = lookup.enrich(isbn)
    return {"coverUrl": found.cover_url, "publisher": found.publisher, "releaseYear": found.release_year}


@router.post("/apply")
def apply(body: BookCandidate, ctx: ReaderContext = Depends(get_reader_context)):
    return apply_candidate(body)
