from fastapi import APIRouter, Depends, HTTPException, status

from onlibrary.context import ReaderContext
from onlibrary.library.tags import TagManager
from onlibrary.store import DocumentStore, LibraryMirror

from ..core.config import settings
from ..core.deps import get_mirror, get_reader_context, get_reader_store
from ..core.serialize import serialize_tag_result
from ..schemas.tag import ConditionalAddRequest, MergeTagsRequest, RenameTagRequest, SelectedTagsRequest

router = APIRouter(prefix="/tags", tags=["tags"])


def _manager(store: DocumentStore = Depends(get_reader_store)) -> TagManager:
    return TagManager(store, max_workers=settings.TAG_BATCH_MAX_WORKERS)


@router.post("/rename")
def rename_tag(
    body: RenameTagRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    mirror: LibraryMirror = Depends(get_mirror),
    manager: TagManager = Depends(_manager),
):
    return serialize_tag_result(manager.rename(ctx, mirror.books, body.old_tag, body.new_tag))


@router.delete("/{tag}")
def delete_tag(
    tag: str,
    confirm: bool = False,
    ctx: ReaderContext = Depends(get_reader_context),
    mirror: LibraryMirror = Depends(get_mirror),
    manager: TagManager = Depends(_manager),
):
    """Remove ``tag`` from every book. Without ``confirm=true`` nothing is written."""
    result = manager.delete(ctx, mirror.books, tag, confirm=lambda _tag, _count: confirm)
    if not result.confirmed:
        raise HTTPException(
            status_code=status.HTTP_428_PRECONDITION_REQUIRED,
            detail={
                "message": f'Delete tag "{tag}" from {result.matched} books? Repeat with confirm=true.',
                "tag": tag,
                "count": result.matched,
            },
        )
    return serialize_tag_result(result)


@router.post("/merge")
def merge_tags(
    body: MergeTagsRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    mirror: LibraryMirror = Depends(get_mirror),
    manager: TagManager = Depends(_manager),
):
    return serialize_tag_result(manager.merge(ctx, mirror.books, body.source_tags, body.target_tag))


@router.post("/conditional-add")
def conditional_add(
    body: ConditionalAddRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    mirror: LibraryMirror = Depends(get_mirror),
    manager: TagManager = Depends(_manager),
):
    return serialize_tag_result(manager.conditional_add(ctx, mirror.books, body.condition_tag, body.tag_to_add))


@router.post("/selected/add")
def add_to_selected(
    body: SelectedTagsRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    mirror: LibraryMirror = Depends(get_mirror),
    manager: TagManager = Depends(_manager),
):
    return serialize_tag_result(manager.add_to_selected(ctx, mirror.books, body.book_ids, body.tags))


@router.post("/selected/remove")
def remove_from_selected(
    body: SelectedTagsRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    mirror: LibraryMirror = Depends(get_mirror),
    manager: TagManager = Depends(_manager),
):
    return serialize_tag_result(manager.remove_from_selected(ctx, mirror.books, body.book_ids, body.tags))
