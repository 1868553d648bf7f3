from pydantic import BaseModel


class FriendRequestCreate(BaseModel):
    username: str
