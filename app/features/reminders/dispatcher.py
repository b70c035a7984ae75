"""
Boucle de livraison des rappels dus (appelée par scripts/dispatch_reminders.py).

Chaque rappel est d'abord réclamé (pending -> dispatched) puis transmis à `notify` :
livraison au plus une fois, même si plusieurs pollers tournent en parallèle.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

import structlog

from app.core.errors import AlreadyDispatchedError
from app.db.models.reminders import Reminder
from app.features.reminders.services import ReminderService

log = structlog.get_logger(__name__)

Notifier = Callable[[Reminder], None]


@dataclass
class DispatchReport:
    dispatched: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)   # réclamés par un autre poller
    failed: List[int] = field(default_factory=list)    # notify a levé une exception


def log_notifier(reminder: Reminder) -> None:
    log.info(
        "reminder_notified",
        reminder_id=reminder.id,
        user_id=reminder.user_id,
        task_id=reminder.task_id,
        memo_id=reminder.memo_id,
        title=reminder.title,
    )


def dispatch_due(
    service: ReminderService,
    notify: Notifier = log_notifier,
    *,
    now: Optional[datetime] = None,
    limit: int = 500,
) -> DispatchReport:
    report = DispatchReport()
    due = service.due_reminders(now, limit=limit)
    for reminder in due:
        reminder_id = reminder.id
        try:
            claimed = service.mark_dispatched(reminder_id)
        except AlreadyDispatchedError:
            report.skipped.append(reminder_id)
            continue

        try:
            notify(claimed)
        except Exception:
            log.exception("reminder_notify_failed", reminder_id=reminder_id)
            report.failed.append(reminder_id)
            continue
        report.dispatched.append(reminder_id)

    log.info(
        "reminders_dispatch_run",
        due=len(due),
        dispatched=len(report.dispatched),
        skipped=len(report.skipped),
        failed=len(report.failed),
    )
    return report
