"""
Prédicats et agrégats purs sur un instantané de tâches.

Mêmes définitions que les requêtes SQL de TaskRepository :
- en retard : due_date < now, non complétée
- à venir   : now <= due_date < now + window, non complétée
Les deux ensembles sont donc disjoints pour tout now et toute fenêtre >= 0.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Sequence

from app.db.models.tasks import Task, TaskStatus
from app.features.tasks.schemas import (
    PriorityCounts,
    StatusCounts,
    TaskStatsOut,
)


def is_open(task: Task) -> bool:
    return task.status != TaskStatus.COMPLETED


def is_overdue(task: Task, now: datetime) -> bool:
    return is_open(task) and task.due_date is not None and task.due_date < now


def is_upcoming(task: Task, now: datetime, window: timedelta) -> bool:
    return (
        is_open(task)
        and task.due_date is not None
        and now <= task.due_date < now + window
    )


def order_key(task: Task):
    """Même ordre que TaskRepository._ordered : due_date asc (nulls last), created_at desc."""
    return (
        task.due_date is None,
        task.due_date or datetime.min,
        -task.created_at.timestamp(),
        -(task.id or 0),
    )


def ordered(tasks: Iterable[Task]) -> List[Task]:
    return sorted(tasks, key=order_key)


def compute_stats(tasks: Sequence[Task], now: datetime) -> TaskStatsOut:
    counts = StatusCounts()
    priorities = PriorityCounts()
    overdue = 0
    for task in tasks:
        setattr(counts, task.status.value, getattr(counts, task.status.value) + 1)
        setattr(priorities, task.priority.value, getattr(priorities, task.priority.value) + 1)
        if is_overdue(task, now):
            overdue += 1
    return TaskStatsOut(
        total=len(tasks),
        counts=counts,
        priorities=priorities,
        overdue_count=overdue,
    )
