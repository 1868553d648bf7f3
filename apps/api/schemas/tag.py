from pydantic import BaseModel


class RenameTagRequest(BaseModel):
    old_tag: str
    new_tag: str


class MergeTagsRequest(BaseModel):
    source_tags: list[str]
    target_tag: str


class ConditionalAddRequest(BaseModel):
    condition_tag: str
    tag_to_add: str


class SelectedTagsRequest(BaseModel):
    book_ids: list[int]
    tags: list[str]
