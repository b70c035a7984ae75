from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = []
    for name in tags:
        name = name.strip()
        if not name:
            raise ValueError("Tag names cannot be blank")
        if len(name) > 100:
            raise ValueError("Tag names are limited to 100 characters")
        if name not in cleaned:
            cleaned.append(name)
    return cleaned


class MemoCreateIn(BaseModel):
    video_id: int = Field(..., ge=1)
    content: str = Field(..., min_length=1, max_length=65535)
    timestamp_sec: Optional[int] = Field(None, ge=0)
    is_important: bool = False
    tags: List[str] = Field(default_factory=list, examples=[["python", "à revoir"]])

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, value):
        return _clean_tags(value)


class MemoUpdateIn(BaseModel):
    content: Optional[str] = Field(None, min_length=1, max_length=65535)
    timestamp_sec: Optional[int] = Field(None, ge=0)
    is_important: Optional[bool] = None
    # None = inchangé ; [] = retirer tous les tags
    tags: Optional[List[str]] = None

    @field_validator("tags")
    @classmethod
    def _check_tags(cls, value):
        return _clean_tags(value)


class TagRefOut(BaseModel):
    id: int
    name: str
    color: Optional[str] = None

    model_config = {"from_attributes": True}


class MemoOut(BaseModel):
    id: int
    user_id: int
    video_id: int
    content: str
    timestamp_sec: Optional[int]
    is_important: bool
    tags: List[TagRefOut] = []
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
