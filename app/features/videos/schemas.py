from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class VideoSaveIn(BaseModel):
    youtube_url: str = Field(..., min_length=1, examples=["https://www.youtube.com/watch?v=dQw4w9WgXcQ"])
    title: Optional[str] = Field(None, max_length=500)
    theme_id: Optional[int] = Field(None, ge=1)


class VideoUpdateIn(BaseModel):
    title: Optional[str] = Field(None, max_length=500)
    theme_id: Optional[int] = Field(None, ge=1, description="null pour retirer le thème")


class VideoOut(BaseModel):
    id: int
    user_id: int
    youtube_id: str
    youtube_url: str
    title: Optional[str]
    theme_id: Optional[int]
    last_watched_at: Optional[datetime] = None
    watch_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
