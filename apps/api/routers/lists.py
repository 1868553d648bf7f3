from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from onlibrary.context import ReaderContext
from onlibrary.library.lists import ListService
from onlibrary.store import DocumentStore, LibraryMirror

from ..core.deps import get_mirror, get_reader_context, get_reader_store
from ..core.serialize import serialize_list
from ..schemas.list import (
    CreateListRequest,
    ListBookRequest,
    MoveRequest,
    ReorderRequest,
    ReplaceOrderRequest,
    UpdateListRequest,
)

router = APIRouter(prefix="/lists", tags=["lists"])


def _service(store: DocumentStore = Depends(get_reader_store)) -> ListService:
    return ListService(store)


@router.get("")
def get_lists(
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return [serialize_list(bl) for bl in lists.all(ctx)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_list(
    body: CreateListRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return serialize_list(lists.create(ctx, body.name, body.book_ids, body.cover_url))


@router.get("/{list_id}")
def get_list(
    list_id: int,
    ctx: ReaderContext = Depends(get_reader_context),
    mirror: LibraryMirror = Depends(get_mirror),
    lists: ListService = Depends(_service),
):
    # Ids of deleted books are skipped here, never pruned from the list.
    return serialize_list(lists.get(ctx, list_id), lists.books_in(ctx, list_id, mirror.books))


@router.patch("/{list_id}")
def update_list(
    list_id: int,
    body: UpdateListRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    changes = body.model_dump(exclude_unset=True)
    book_list = lists.get(ctx, list_id)
    if "name" in changes:
        book_list = lists.rename(ctx, list_id, changes["name"])
    if "cover_url" in changes:
        book_list = lists.set_cover(ctx, list_id, changes["cover_url"])
    return serialize_list(book_list)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_list(
    list_id: int,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    lists.delete(ctx, list_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{list_id}/books")
def add_book(
    list_id: int,
    body: ListBookRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return serialize_list(lists.append(ctx, list_id, body.book_id))


@router.delete("/{list_id}/books/{book_id}")
def remove_book(
    list_id: int,
    book_id: int,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return serialize_list(lists.remove(ctx, list_id, book_id))


@router.post("/{list_id}/books/{book_id}/toggle")
def toggle_book(
    list_id: int,
    book_id: int,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return serialize_list(lists.toggle(ctx, list_id, book_id))


@router.post("/{list_id}/reorder")
def reorder(
    list_id: int,
    body: ReorderRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return serialize_list(lists.reorder(ctx, list_id, body.from_index, body.to_index))


@router.post("/{list_id}/move")
def move(
    list_id: int,
    body: MoveRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return serialize_list(lists.move(ctx, list_id, body.active_id, body.over_id))


@router.put("/{list_id}/order")
def replace_order(
    list_id: int,
    body: ReplaceOrderRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    lists: ListService = Depends(_service),
):
    return serialize_list(lists.replace_order(ctx, list_id, body.book_ids))
