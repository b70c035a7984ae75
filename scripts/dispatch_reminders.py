"""
Livre les rappels dus puis s'arrête (à lancer depuis cron / un timer systemd) :

    python -m scripts.dispatch_reminders
    python -m scripts.dispatch_reminders --loop            # toutes les REMINDER_POLL_SECONDS
    python -m scripts.dispatch_reminders --loop --every 10
"""

import argparse
import time

import structlog

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.repositories.memos import MemoRepository
from app.db.repositories.reminders import ReminderRepository
from app.db.repositories.tasks import TaskRepository
from app.db.session import engine, init_db, Session
from app.features.reminders.dispatcher import dispatch_due
from app.features.reminders.services import ReminderService

log = structlog.get_logger("dispatch_reminders")


def run_once() -> None:
    with Session(engine) as session:
        service = ReminderService(
            repo=ReminderRepository(session),
            task_repo=TaskRepository(session),
            memo_repo=MemoRepository(session),
        )
        dispatch_due(service, limit=settings.REMINDER_BATCH_SIZE)


def main() -> None:
    parser = argparse.ArgumentParser(description="Dispatch due reminders")
    parser.add_argument("--loop", action="store_true", help="keep polling instead of running once")
    parser.add_argument("--every", type=float, default=settings.REMINDER_POLL_SECONDS, help="poll interval in seconds")
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
    init_db()
    run_once()
    while args.loop:
        time.sleep(args.every)
        run_once()


if __name__ == "__main__":
    main()
