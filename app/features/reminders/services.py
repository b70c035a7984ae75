"""
➡️ But : Planifier des rappels sur une tâche ou un mémo et exposer la file des rappels dus.

Modèle « polling » : aucun push. Un appelant (script, worker) lit les rappels dus
puis marque chacun `dispatched` ; le passage pending -> dispatched est un UPDATE
conditionnel, donc un rappel n'est livré qu'une fois même avec plusieurs pollers.
"""

from datetime import datetime
from typing import Optional, Sequence

import structlog

from app.core.errors import (
    AlreadyDispatchedError,
    InvalidAssociationError,
    NotFoundError,
)
from app.db.models.reminders import Reminder, ReminderStatus
from app.db.repositories.memos import MemoRepository
from app.db.repositories.reminders import ReminderRepository
from app.db.repositories.tasks import TaskRepository
from app.features.ownership import get_owned_or_raise
from app.features.reminders.schemas import ReminderCreateIn, ReminderUpdateIn
from app.utils.clock import utcnow

log = structlog.get_logger(__name__)


class ReminderService:
    def __init__(
        self,
        repo: ReminderRepository,
        task_repo: TaskRepository,
        memo_repo: MemoRepository,
        now_fn=utcnow,
    ):
        self.repo = repo
        self.task_repo = task_repo
        self.memo_repo = memo_repo
        self.now_fn = now_fn

    # -------- Reads --------

    def list(
        self,
        user_id: int,
        *,
        status: Optional[ReminderStatus] = None,
        task_id: Optional[int] = None,
        memo_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 20,
    ):
        items, total = self.repo.search(
            user_id, status=status, task_id=task_id, memo_id=memo_id, offset=offset, limit=limit
        )
        return {"items": items, "total": total}

    def get(self, reminder_id: int, user_id: int) -> Reminder:
        return get_owned_or_raise(
            self.repo, reminder_id, user_id, not_found=NotFoundError("Reminder not found")
        )

    def due_reminders(
        self,
        now: Optional[datetime] = None,
        *,
        user_id: Optional[int] = None,
        limit: int = 500,
    ) -> Sequence[Reminder]:
        return self.repo.due(now or self.now_fn(), user_id=user_id, limit=limit)

    # -------- Writes --------

    def create(self, payload: ReminderCreateIn, *, user_id: int) -> Reminder:
        if (payload.task_id is None) == (payload.memo_id is None):
            raise InvalidAssociationError(
                details={"task_id": payload.task_id, "memo_id": payload.memo_id}
            )
        if payload.task_id is not None:
            get_owned_or_raise(
                self.task_repo, payload.task_id, user_id, not_found=NotFoundError("Task not found")
            )
        else:
            get_owned_or_raise(
                self.memo_repo, payload.memo_id, user_id, not_found=NotFoundError("Memo not found")
            )

        reminder = self.repo.create(
            user_id=user_id,
            task_id=payload.task_id,
            memo_id=payload.memo_id,
            fire_at=payload.fire_at,
            title=payload.title,
            message=payload.message,
            status=ReminderStatus.PENDING,
        )
        log.info(
            "reminder_created",
            reminder_id=reminder.id,
            user_id=user_id,
            task_id=reminder.task_id,
            memo_id=reminder.memo_id,
        )
        return reminder

    def update(self, reminder_id: int, payload: ReminderUpdateIn, *, user_id: int) -> Reminder:
        reminder = self.get(reminder_id, user_id)
        if reminder.status != ReminderStatus.PENDING:
            raise AlreadyDispatchedError("Dispatched reminders cannot be modified")
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("fire_at", False) is None:
            changes.pop("fire_at")
        if not changes:
            return reminder

        # le poller peut réclamer le rappel entre la lecture et l'écriture
        session = self.repo.session
        if not self.repo.update_if_pending(reminder.id, changes, self.now_fn()):
            session.rollback()
            raise AlreadyDispatchedError("Dispatched reminders cannot be modified")
        session.commit()
        session.refresh(reminder)
        return reminder

    def delete(self, reminder_id: int, *, user_id: int) -> None:
        reminder = self.get(reminder_id, user_id)
        self.repo.delete(reminder)
        log.info("reminder_deleted", reminder_id=reminder_id, user_id=user_id)

    def mark_dispatched(self, reminder_id: int, *, user_id: Optional[int] = None) -> Reminder:
        """
        pending -> dispatched (terminal), une seule fois.
        user_id=None : appel système (poller), sans contrôle de propriétaire.
        """
        if user_id is not None:
            reminder = self.get(reminder_id, user_id)
        else:
            reminder = self.repo.get(reminder_id)
            if reminder is None:
                raise NotFoundError("Reminder not found")

        session = self.repo.session
        try:
            claimed = self.repo.claim_dispatch(reminder.id, self.now_fn())
            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(reminder)
        if not claimed:
            raise AlreadyDispatchedError()
        log.info("reminder_dispatched", reminder_id=reminder.id, user_id=reminder.user_id)
        return reminder
