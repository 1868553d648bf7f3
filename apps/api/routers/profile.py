from fastapi import APIRouter, Depends, HTTPException, status

from onlibrary.context import ReaderContext
from onlibrary.library.social import SocialService
from onlibrary.store import DocumentStore

from ..core.deps import get_reader_context, get_reader_store
from ..core.serialize import serialize_profile
from ..schemas.profile import SetupProfileRequest, UpdateProfileRequest

router = APIRouter(prefix="/profile", tags=["profile"])


def _service(store: DocumentStore = Depends(get_reader_store)) -> SocialService:
    return SocialService(store)


@router.get("")
def get_profile(
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    profile = social.profile(ctx)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not set up")
    return serialize_profile(profile)


@router.get("/username-available")
def username_available(
    username: str,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return {"username": username.strip().lower(), "available": social.is_username_available(username)}


@router.post("", status_code=status.HTTP_201_CREATED)
def setup_profile(
    body: SetupProfileRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return serialize_profile(social.setup_profile(ctx, body.username, body.display_name))


@router.patch("")
def update_profile(
    body: UpdateProfileRequest,
    ctx: ReaderContext = Depends(get_reader_context),
    social: SocialService = Depends(_service),
):
    return serialize_profile(social.update_profile(ctx, **body.model_dump(exclude_unset=True)))
