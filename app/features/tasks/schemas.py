"""
➡️ But : Définir les formats d'entrée/sortie de l'API des tâches (couche validation).

Les dates reçues (ISO 8601, avec ou sans fuseau) sont normalisées en UTC naïf,
le format de stockage de toutes les colonnes DateTime.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.db.models.tasks import TaskStatus, TaskPriority
from app.utils.clock import to_naive_utc


class _DueDateMixin(BaseModel):
    @field_validator("due_date", check_fields=False)
    @classmethod
    def _normalize_due_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


# ---------- IN ----------

class TaskCreateIn(_DueDateMixin):
    title: str = Field(..., min_length=1, max_length=500, examples=["Buy milk"])
    description: Optional[str] = Field(None, max_length=65535)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = Field(None, examples=["2026-10-20T09:00:00Z"])
    video_id: Optional[int] = Field(None, ge=1)


class TaskUpdateIn(_DueDateMixin):
    """Patch partiel : seuls les champs envoyés sont appliqués (due_date=null l'efface)."""
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = Field(None, max_length=65535)
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None


class TaskFromMemoIn(_DueDateMixin):
    """Tous les champs sont optionnels : titre/description par défaut tirés du mémo."""
    title: Optional[str] = Field(None, min_length=1, max_length=500, examples=["Follow up"])
    description: Optional[str] = Field(None, max_length=65535)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None


# ---------- OUT ----------

class TaskOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime]
    completed_at: Optional[datetime]
    memo_id: Optional[int]
    video_id: Optional[int]
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MemoSummary(BaseModel):
    id: int
    content: str
    timestamp_sec: Optional[int] = None

    model_config = {"from_attributes": True}


class VideoSummary(BaseModel):
    id: int
    youtube_id: str
    youtube_url: str
    title: Optional[str] = None

    model_config = {"from_attributes": True}


class TaskDetailOut(TaskOut):
    """Tâche + mémo source et vidéo liée (None si supprimés)."""
    memo: Optional[MemoSummary] = None
    video: Optional[VideoSummary] = None


class StatusCounts(BaseModel):
    pending: int = 0
    in_progress: int = 0
    completed: int = 0


class PriorityCounts(BaseModel):
    low: int = 0
    medium: int = 0
    high: int = 0


class TaskStatsOut(BaseModel):
    total: int
    counts: StatusCounts
    priorities: PriorityCounts
    overdue_count: int


class DashboardOut(BaseModel):
    generated_at: datetime
    window_days: float
    overdue: List[TaskOut]
    upcoming: List[TaskOut]
    recent: List[TaskOut]
    stats: TaskStatsOut
