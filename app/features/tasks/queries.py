"""
➡️ But : Lectures filtrées et agrégats sur les tâches (Query & Aggregation Engine).

- list / search : filtres combinables + pagination, ordre stable
- overdue / upcoming : prédicats temporels évalués en SQL
- stats / dashboard : calculés sur UN instantané (une seule lecture) sous
  statement_timeout, donc cohérents entre eux (overdue_count == len(overdue))
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog

from app.core.errors import ValidationError
from app.db.repositories.tasks import TaskFilters, TaskRepository
from app.db.session import statement_timeout
from app.features.tasks import aggregation
from app.features.tasks.schemas import DashboardOut, TaskOut, TaskStatsOut
from app.utils.clock import utcnow

log = structlog.get_logger(__name__)

# borne haute de la fenêtre « à venir » (10 ans)
MAX_WINDOW_DAYS = 3650


class TaskQueryService:
    def __init__(
        self,
        repo: TaskRepository,
        *,
        upcoming_window: timedelta,
        dashboard_limit: int = 5,
        timeout_seconds: float = 5.0,
        now_fn=utcnow,
    ):
        self.repo = repo
        self.upcoming_window = upcoming_window
        self.dashboard_limit = dashboard_limit
        self.timeout_seconds = timeout_seconds
        self.now_fn = now_fn

    def _window(self, window: Optional[timedelta]) -> timedelta:
        window = self.upcoming_window if window is None else window
        if window < timedelta(0) or window > timedelta(days=MAX_WINDOW_DAYS):
            raise ValidationError(
                f"Upcoming window must be between 0 and {MAX_WINDOW_DAYS} days",
                details={"window_days": window.total_seconds() / 86400},
            )
        return window

    # -------- Listes --------

    def list(self, user_id: int, filters: Optional[TaskFilters] = None, *, offset: int = 0, limit: int = 20):
        filters = filters or TaskFilters()
        if filters.due_from and filters.due_to and filters.due_from > filters.due_to:
            raise ValidationError("due_from must be before due_to")
        items, total = self.repo.query(user_id, filters, offset=offset, limit=limit)
        return {"items": items, "total": total}

    def search(self, user_id: int, q: str, *, offset: int = 0, limit: int = 20):
        q = (q or "").strip()
        if not q:
            raise ValidationError("Search query must not be empty")
        return self.list(user_id, TaskFilters(q=q), offset=offset, limit=limit)

    def overdue(self, user_id: int, *, now: Optional[datetime] = None):
        return self.repo.overdue(user_id, now or self.now_fn())

    def upcoming(self, user_id: int, *, window: Optional[timedelta] = None, now: Optional[datetime] = None):
        window = self._window(window)
        now = now or self.now_fn()
        return self.repo.upcoming(user_id, now, now + window)

    # -------- Agrégats --------

    def stats(self, user_id: int, *, now: Optional[datetime] = None) -> TaskStatsOut:
        now = now or self.now_fn()
        with statement_timeout(self.repo.session, self.timeout_seconds):
            snapshot = self.repo.snapshot_for_user(user_id)
        return aggregation.compute_stats(snapshot, now)

    def dashboard(
        self,
        user_id: int,
        *,
        window: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> DashboardOut:
        window = self._window(window)
        now = now or self.now_fn()
        with statement_timeout(self.repo.session, self.timeout_seconds):
            snapshot = list(self.repo.snapshot_for_user(user_id))

        tasks = aggregation.ordered(snapshot)
        overdue = [t for t in tasks if aggregation.is_overdue(t, now)]
        upcoming = [t for t in tasks if aggregation.is_upcoming(t, now, window)]
        recent = sorted(snapshot, key=lambda t: (t.created_at, t.id), reverse=True)

        log.debug("dashboard_built", user_id=user_id, tasks=len(snapshot), overdue=len(overdue))
        return DashboardOut(
            generated_at=now,
            window_days=window.total_seconds() / 86400,
            overdue=[TaskOut.model_validate(t) for t in overdue],
            upcoming=[TaskOut.model_validate(t) for t in upcoming],
            recent=[TaskOut.model_validate(t) for t in recent[: self.dashboard_limit]],
            stats=aggregation.compute_stats(snapshot, now),
        )
