import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from onlibrary.context import ReaderContext
from onlibrary.db.crud import UserCRUD
from onlibrary.db.models import User
from onlibrary.errors import ValidationError
from onlibrary.library.social import SocialService
from onlibrary.store import SqlDocumentStore

from ..core.auth import create_token, hash_password, verify_password
from ..core.deps import get_current_user, get_db, get_store
from ..core.serialize import serialize_user
from ..schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UpdateDisplayNameRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    store: SqlDocumentStore = Depends(get_store),
):
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("password", f"Password should be at least {MIN_PASSWORD_LENGTH} characters")
    social = SocialService(store)
    if body.username is not None and not social.is_username_available(body.username):
        raise ValidationError("username", "Username already taken")
    try:
        user = UserCRUD.create(
            db,
            email=body.email,
            display_name=body.display_name,
            password_hash=hash_password(body.password),
        )
        db.commit()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if body.username is not None:
        social.setup_profile(ReaderContext(owner_id=user.id), body.username, user.display_name, email=user.email)
    logger.info("Registered account %s", user.id)
    return TokenResponse(access_token=create_token(user.id))


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = UserCRUD.get_by_email(db, body.email)
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenResponse(access_token=create_token(user.id))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy.
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return serialize_user(current_user)


@router.patch("/me")
def update_me(
    body: UpdateDisplayNameRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        user = UserCRUD.update(db, current_user.id, display_name=body.display_name)
        db.commit()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return serialize_user(user)
