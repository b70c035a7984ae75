from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

from sqlalchemy import update, delete
from sqlmodel import select, func

from app.db.repositories.base import OwnedRepository
from app.db.models.reminders import Reminder, ReminderStatus


class ReminderRepository(OwnedRepository[Reminder]):
    model = Reminder

    def search(
        self,
        user_id: int,
        *,
        status: Optional[ReminderStatus] = None,
        task_id: Optional[int] = None,
        memo_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[Sequence[Reminder], int]:
        conditions = [self.model.user_id == user_id]
        if status is not None:
            conditions.append(self.model.status == status)
        if task_id is not None:
            conditions.append(self.model.task_id == task_id)
        if memo_id is not None:
            conditions.append(self.model.memo_id == memo_id)

        items = self.session.exec(
            select(self.model)
            .where(*conditions)
            .order_by(self.model.fire_at.asc(), self.model.id.asc())
            .offset(offset)
            .limit(limit)
        ).all()
        total = self.session.exec(select(func.count(self.model.id)).where(*conditions)).one()
        return items, total

    def due(self, now: datetime, *, user_id: Optional[int] = None, limit: int = 500) -> Sequence[Reminder]:
        """Rappels en attente dont fire_at <= now, les plus anciens d'abord."""
        stmt = (
            select(self.model)
            .where(self.model.status == ReminderStatus.PENDING)
            .where(self.model.fire_at <= now)
        )
        if user_id is not None:
            stmt = stmt.where(self.model.user_id == user_id)
        return self.session.exec(
            stmt.order_by(self.model.fire_at.asc(), self.model.id.asc()).limit(limit)
        ).all()

    def claim_dispatch(self, reminder_id: int, now: datetime) -> bool:
        """pending -> dispatched, une seule fois (UPDATE conditionnel, sans commit)."""
        result = self.session.exec(
            update(self.model)
            .where(self.model.id == reminder_id)
            .where(self.model.status == ReminderStatus.PENDING)
            .values(status=ReminderStatus.DISPATCHED, dispatched_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def update_if_pending(self, reminder_id: int, changes: dict, now: datetime) -> bool:
        """Modifie le rappel seulement s'il est encore pending (sans commit)."""
        result = self.session.exec(
            update(self.model)
            .where(self.model.id == reminder_id)
            .where(self.model.status == ReminderStatus.PENDING)
            .values(**changes, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def delete_for_memos(self, memo_ids: Iterable[int]) -> int:
        memo_ids = list(memo_ids)
        if not memo_ids:
            return 0
        result = self.session.exec(delete(self.model).where(self.model.memo_id.in_(memo_ids)))
        return result.rowcount
