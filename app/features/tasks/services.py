"""
➡️ But : Contenir la logique métier des tâches (Task Store).

TaskService : création, lecture, mise à jour, complétion / réouverture, suppression.

Toute mutation d'une tâche existante passe par `_mutate` :
lecture -> décision -> UPDATE conditionnel sur `version`.
Si une autre écriture est passée entre la lecture et l'UPDATE, la session est
annulée, la tâche relue et la décision rejouée une seule fois ; un second échec
lève ConflictError. Deux `complete` concurrents donnent donc exactement un succès
et un AlreadyCompletedError.
"""

from datetime import timedelta
from typing import Callable, Dict, Optional

import structlog

from app.core.errors import (
    AlreadyCompletedError,
    ConflictError,
    InvalidTransitionError,
    NotCompletedError,
    NotFoundError,
)
from app.db.models.tasks import Task, TaskStatus, VALID_TRANSITIONS
from app.db.repositories.memos import MemoRepository
from app.db.repositories.tasks import TaskRepository
from app.db.repositories.videos import VideoRepository
from app.features.ownership import get_owned_or_raise
from app.features.tasks.schemas import (
    MemoSummary,
    TaskCreateIn,
    TaskDetailOut,
    TaskUpdateIn,
    VideoSummary,
)
from app.utils.clock import utcnow

log = structlog.get_logger(__name__)

MAX_ATTEMPTS = 2

Decision = Callable[[Task], Dict[str, object]]


class TaskService:
    def __init__(
        self,
        repo: TaskRepository,
        video_repo: VideoRepository,
        memo_repo: Optional[MemoRepository] = None,
        now_fn=utcnow,
    ):
        self.repo = repo
        self.video_repo = video_repo
        self.memo_repo = memo_repo
        self.now_fn = now_fn

    @property
    def session(self):
        return self.repo.session

    # -------- Reads --------

    def get(self, task_id: int, user_id: int) -> Task:
        return get_owned_or_raise(
            self.repo, task_id, user_id, not_found=NotFoundError("Task not found")
        )

    def get_details(self, task_id: int, user_id: int) -> TaskDetailOut:
        task = self.get(task_id, user_id)
        details = TaskDetailOut.model_validate(task)
        # memo_id est une provenance sans FK : le mémo peut avoir disparu
        if task.memo_id is not None and self.memo_repo is not None:
            memo = self.memo_repo.get(task.memo_id)
            if memo is not None and memo.user_id == user_id:
                details.memo = MemoSummary.model_validate(memo)
        if task.video_id is not None:
            video = self.video_repo.get(task.video_id)
            if video is not None and video.user_id == user_id:
                details.video = VideoSummary.model_validate(video)
        return details

    # -------- Create --------

    def create(
        self,
        payload: TaskCreateIn,
        *,
        user_id: int,
        memo_id: Optional[int] = None,
    ) -> Task:
        if payload.video_id is not None:
            get_owned_or_raise(self.video_repo, payload.video_id, user_id)
        now = self.now_fn()
        task = self.repo.create(
            user_id=user_id,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            due_date=payload.due_date,
            video_id=payload.video_id,
            memo_id=memo_id,
            status=TaskStatus.PENDING,
            completed_at=None,
            version=1,
            created_at=now,
            updated_at=now,
        )
        log.info("task_created", task_id=task.id, user_id=user_id, memo_id=memo_id)
        return task

    # -------- Mutations (verrou optimiste) --------

    def _completion_time(self, task: Task):
        # strictement postérieur à la dernière écriture, même si l'horloge stagne
        now = self.now_fn()
        floor = task.updated_at + timedelta(microseconds=1)
        return max(now, floor)

    def _transition(self, task: Task, target: TaskStatus) -> Dict[str, object]:
        if target == task.status:
            return {}
        if target not in VALID_TRANSITIONS[task.status]:
            raise InvalidTransitionError(task.status.value, target.value)
        if target == TaskStatus.COMPLETED:
            completed_at = self._completion_time(task)
            return {"status": target, "completed_at": completed_at, "updated_at": completed_at}
        return {"status": target, "completed_at": None}

    def _mutate(self, task_id: int, user_id: int, decide: Decision, *, event: str) -> Task:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            task = self.get(task_id, user_id)
            changes = decide(task)
            if not changes:
                return task

            changes.setdefault("updated_at", max(self.now_fn(), task.updated_at))
            expected = task.version
            try:
                applied = self.repo.compare_and_set(task.id, expected, **changes)
                if applied:
                    self.session.commit()
            except Exception:
                self.session.rollback()
                raise

            if applied:
                self.session.refresh(task)
                log.info(event, task_id=task.id, user_id=user_id, version=task.version)
                return task

            # une autre écriture a gagné : on relit l'état courant
            self.session.rollback()
            log.info("task_write_conflict", task_id=task_id, attempt=attempt, expected_version=expected)

        raise ConflictError("Task was modified concurrently, retry later")

    def update(self, task_id: int, payload: TaskUpdateIn, *, user_id: int) -> Task:
        patch = payload.model_dump(exclude_unset=True)
        # title/priority/status à null : ignorés (ce ne sont pas des champs effaçables)
        for key in ("title", "priority", "status"):
            if key in patch and patch[key] is None:
                patch.pop(key)

        def decide(task: Task) -> Dict[str, object]:
            changes: Dict[str, object] = {}
            for key in ("title", "description", "priority", "due_date"):
                if key in patch and getattr(task, key) != patch[key]:
                    changes[key] = patch[key]
            if "status" in patch:
                changes.update(self._transition(task, patch["status"]))
            return changes

        return self._mutate(task_id, user_id, decide, event="task_updated")

    def complete(self, task_id: int, *, user_id: int) -> Task:
        def decide(task: Task) -> Dict[str, object]:
            if task.status == TaskStatus.COMPLETED:
                raise AlreadyCompletedError()
            return self._transition(task, TaskStatus.COMPLETED)

        return self._mutate(task_id, user_id, decide, event="task_completed")

    def reopen(self, task_id: int, *, user_id: int) -> Task:
        def decide(task: Task) -> Dict[str, object]:
            if task.status != TaskStatus.COMPLETED:
                raise NotCompletedError()
            return self._transition(task, TaskStatus.PENDING)

        return self._mutate(task_id, user_id, decide, event="task_reopened")

    # -------- Delete --------

    def delete(self, task_id: int, *, user_id: int) -> None:
        task = self.get(task_id, user_id)
        try:
            removed = self.repo.delete_reminders(task.id)
            self.repo.delete(task, commit=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        log.info("task_deleted", task_id=task_id, user_id=user_id, reminders_deleted=removed)
