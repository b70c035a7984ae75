from typing import Optional
from sqlmodel import SQLModel, Field

from .base import OwnedModelDB


class Memo(OwnedModelDB, table=True):
    """Annotation horodatée sur une vidéo."""

    __table_args__ = {"sqlite_autoincrement": True}

    video_id: int = Field(foreign_key="video.id", index=True, nullable=False)
    content: str
    timestamp_sec: Optional[int] = Field(default=None, ge=0, description="Position dans la vidéo (secondes)")
    is_important: bool = Field(default=False)


class MemoTag(SQLModel, table=True):
    """Table de liaison Memo <-> Tag (many-to-many, ordre sans importance)."""

    memo_id: int = Field(foreign_key="memo.id", primary_key=True)
    tag_id: int = Field(foreign_key="tag.id", primary_key=True, index=True)
