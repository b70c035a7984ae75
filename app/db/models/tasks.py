from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel import Field

from .base import OwnedModelDB, utc_column


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Graphe des transitions autorisées ; completed -> in_progress passe par pending
VALID_TRANSITIONS = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
    TaskStatus.IN_PROGRESS: {TaskStatus.PENDING, TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: {TaskStatus.PENDING},
}


class Task(OwnedModelDB, table=True):
    """
    Unité de travail actionnable.

    Invariant : completed_at est renseigné si et seulement si status == completed.
    due_date est conservée après complétion (historique).
    """

    __table_args__ = {"sqlite_autoincrement": True}

    title: str = Field(index=True)
    description: Optional[str] = Field(default=None)
    status: TaskStatus = Field(default=TaskStatus.PENDING, index=True)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, index=True)
    due_date: Optional[datetime] = utc_column(default=None, index=True)
    completed_at: Optional[datetime] = utc_column(default=None)

    # Provenance : pas de FK, le mémo source peut être supprimé
    memo_id: Optional[int] = Field(default=None, index=True)
    video_id: Optional[int] = Field(default=None, foreign_key="video.id", index=True)

    # Compteur de verrou optimiste (compare-and-swap)
    version: int = Field(default=1, nullable=False)
