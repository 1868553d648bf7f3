from typing import Literal

from pydantic import BaseModel


class SetupProfileRequest(BaseModel):
    username: str
    display_name: str | None = None


class UpdateProfileRequest(BaseModel):
    display_name: str | None = None
    profile_image_url: str | None = None
    show_books_to_friends: bool | None = None
    show_lists_to_friends: bool | None = None
    private_tag: str | None = None
    theme_preference: Literal["light", "dark", "system"] | None = None
