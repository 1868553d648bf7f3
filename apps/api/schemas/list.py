from pydantic import BaseModel


class CreateListRequest(BaseModel):
    name: str
    book_ids: list[int] = []
    cover_url: str | None = None


class UpdateListRequest(BaseModel):
    name: str | None = None
    cover_url: str | None = None


class ListBookRequest(BaseModel):
    book_id: int


class ReorderRequest(BaseModel):
    from_index: int
    to_index: int


class MoveRequest(BaseModel):
    active_id: int
    over_id: int


class ReplaceOrderRequest(BaseModel):
    book_ids: list[int]
