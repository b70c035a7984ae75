from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Tuple

from sqlalchemy import update, delete
from sqlmodel import select, func, or_

from app.db.repositories.base import OwnedRepository
from app.db.models.tasks import Task, TaskStatus, TaskPriority
from app.db.models.memos import MemoTag
from app.db.models.tags import Tag
from app.db.models.reminders import Reminder


@dataclass
class TaskFilters:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    tag: Optional[str] = None             # tag porté par le mémo source
    due_from: Optional[datetime] = None   # inclus
    due_to: Optional[datetime] = None     # exclu
    memo_id: Optional[int] = None
    video_id: Optional[int] = None
    q: Optional[str] = None               # sous-chaîne title/description, insensible à la casse


class TaskRepository(OwnedRepository[Task]):
    """
    Persistance des tâches.
    Les mutations concurrentes passent par compare_and_set (verrou optimiste sur `version`).
    """
    model = Task

    # ---------- HELPERS ----------

    @staticmethod
    def _ordered(stmt):
        """due_date croissante (nulls en dernier), puis created_at décroissant."""
        return stmt.order_by(
            Task.due_date.is_(None),
            Task.due_date.asc(),
            Task.created_at.desc(),
            Task.id.desc(),
        )

    @staticmethod
    def _conditions(user_id: int, filters: TaskFilters) -> list:
        conditions = [Task.user_id == user_id]
        if filters.status is not None:
            conditions.append(Task.status == filters.status)
        if filters.priority is not None:
            conditions.append(Task.priority == filters.priority)
        if filters.due_from is not None:
            conditions.append(Task.due_date >= filters.due_from)
        if filters.due_to is not None:
            conditions.append(Task.due_date < filters.due_to)
        if filters.memo_id is not None:
            conditions.append(Task.memo_id == filters.memo_id)
        if filters.video_id is not None:
            conditions.append(Task.video_id == filters.video_id)
        if filters.tag:
            tagged_memos = (
                select(MemoTag.memo_id)
                .join(Tag, Tag.id == MemoTag.tag_id)
                .where(Tag.user_id == user_id)
                .where(Tag.name == filters.tag)
            )
            conditions.append(Task.memo_id.in_(tagged_memos))
        if filters.q:
            like = f"%{filters.q}%"
            conditions.append(or_(Task.title.ilike(like), Task.description.ilike(like)))
        return conditions

    # ---------- READ ----------

    def query(
        self,
        user_id: int,
        filters: Optional[TaskFilters] = None,
        *,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[Sequence[Task], int]:
        """Liste filtrée + total (avant pagination)."""
        conditions = self._conditions(user_id, filters or TaskFilters())
        items = self.session.exec(
            self._ordered(select(Task).where(*conditions)).offset(offset).limit(limit)
        ).all()
        total = self.session.exec(select(func.count(Task.id)).where(*conditions)).one()
        return items, total

    def overdue(self, user_id: int, now: datetime) -> Sequence[Task]:
        """due_date < now et status != completed."""
        return self.session.exec(
            self._ordered(
                select(Task)
                .where(Task.user_id == user_id)
                .where(Task.status != TaskStatus.COMPLETED)
                .where(Task.due_date.is_not(None))
                .where(Task.due_date < now)
            )
        ).all()

    def upcoming(self, user_id: int, now: datetime, until: datetime) -> Sequence[Task]:
        """now <= due_date < until et status != completed."""
        return self.session.exec(
            self._ordered(
                select(Task)
                .where(Task.user_id == user_id)
                .where(Task.status != TaskStatus.COMPLETED)
                .where(Task.due_date >= now)
                .where(Task.due_date < until)
            )
        ).all()

    def snapshot_for_user(self, user_id: int) -> Sequence[Task]:
        """Toutes les tâches de l'utilisateur en une seule lecture (base des agrégats)."""
        return self.session.exec(
            self._ordered(select(Task).where(Task.user_id == user_id))
        ).all()

    # ---------- WRITE ----------

    def compare_and_set(self, task_id: int, expected_version: int, **values) -> bool:
        """
        UPDATE conditionnel sur la version lue (sans commit).
        Retourne False si une autre écriture est passée entre-temps.
        """
        result = self.session.exec(
            update(Task)
            .where(Task.id == task_id)
            .where(Task.version == expected_version)
            .values(version=expected_version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_reminders(self, task_id: int) -> int:
        result = self.session.exec(delete(Reminder).where(Reminder.task_id == task_id))
        return result.rowcount
