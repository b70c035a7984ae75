from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from .base import OwnedModelDB, utc_column


class ReminderStatus(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"   # terminal


class Reminder(OwnedModelDB, table=True):
    """Rappel planifié, lié à une tâche OU à un mémo (exactement un des deux)."""

    __table_args__ = {"sqlite_autoincrement": True}

    task_id: Optional[int] = Field(default=None, foreign_key="task.id", index=True)
    memo_id: Optional[int] = Field(default=None, foreign_key="memo.id", index=True)
    fire_at: datetime = utc_column(index=True)
    title: Optional[str] = Field(default=None)
    message: Optional[str] = Field(default=None)
    status: ReminderStatus = Field(default=ReminderStatus.PENDING, index=True)
    dispatched_at: Optional[datetime] = utc_column(default=None)
