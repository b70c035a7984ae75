from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.db.models.reminders import ReminderStatus
from app.utils.clock import to_naive_utc


class ReminderCreateIn(BaseModel):
    """Exactement un de task_id / memo_id (vérifié par le service -> INVALID_ASSOCIATION)."""
    task_id: Optional[int] = Field(None, ge=1)
    memo_id: Optional[int] = Field(None, ge=1)
    fire_at: datetime = Field(..., examples=["2026-10-20T08:00:00Z"])
    title: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator("fire_at")
    @classmethod
    def _normalize(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class ReminderUpdateIn(BaseModel):
    fire_at: Optional[datetime] = None
    title: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = Field(None, max_length=2000)

    @field_validator("fire_at")
    @classmethod
    def _normalize(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class ReminderOut(BaseModel):
    id: int
    user_id: int
    task_id: Optional[int]
    memo_id: Optional[int]
    fire_at: datetime
    title: Optional[str]
    message: Optional[str]
    status: ReminderStatus
    dispatched_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
