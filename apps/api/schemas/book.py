from pydantic import BaseModel

from onlibrary.library.books import BookDraft


class BookRequest(BookDraft):
    pass


class SelectionRequest(BaseModel):
    book_ids: list[int]
