from fastapi import APIRouter, Depends, HTTPException, Response, status

from onlibrary.context import ReaderContext
from onlibrary.library import ordering
from onlibrary.library.social import SocialService
from onlibrary.store import DocumentStore

from ..core.deps import get_reader_context, get_reader_store
from ..core.serialize import (
    serialize_activity,
    serialize_book,
    serialize_list,
    serialize_profile,
    serialize_request,
)
from ..schemas.friend import FriendRequestCreate

router = APIRouter(prefix="/friends", tags=["friends"])


def _service(store: DocumentStore = Depends(get_reader_store)) -> SocialService:
    return SocialService(store)


@router.get("")
def get_friends(
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return [serialize_profile(p, private=False) for p in social.friends(ctx)]


@router.get("/search")
def find_user(
    username: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    profile = social.find_user(username)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return {
        **serialize_profile(profile, private=False),
        "isFriend": social.are_friends(ctx.owner_id, profile.owner_id),
        "isSelf": profile.owner_id == ctx.owner_id,
    }


@router.get("/activity")
def get_activity(
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return [serialize_activity(item) for item in social.activity(ctx)]


@router.get("/requests")
def get_requests(
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return {
        "incoming": [serialize_request(r) for r in social.incoming(ctx)],
        "outgoing": [serialize_request(r) for r in social.outgoing(ctx)],
    }


@router.post("/requests", status_code=status.HTTP_201_CREATED)
def send_request(
    body: FriendRequestCreate,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return serialize_request(social.send_request(ctx, body.username))


@router.post("/requests/{request_id}/accept")
def accept_request(
    request_id: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    friendship = social.accept(ctx, request_id)
    return {"id": friendship.id, "friendId": friendship.other(ctx.owner_id)}


@router.post("/requests/{request_id}/decline")
def decline_request(
    request_id: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return serialize_request(social.decline(ctx, request_id))


@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_request(
    request_id: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    social.cancel(ctx, request_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_friend(
    friend_id: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    social.remove_friend(ctx, friend_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{friend_id}/books")
def friend_books(
    friend_id: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return [serialize_book(b) for b in social.friend_books(ctx, friend_id)]


@router.get("/{friend_id}/lists")
def friend_lists(
    friend_id: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    visible = social.friend_books(ctx, friend_id)
    return [serialize_list(bl, ordering.resolve(bl.book_ids, visible)) for bl in social.friend_lists(ctx, friend_id)]
