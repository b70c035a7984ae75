"""Tests for the reminder scheduler and the polling dispatcher."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import update

from app.core.errors import (
    AlreadyDispatchedError,
    ForbiddenError,
    InvalidAssociationError,
    NotFoundError,
)
from app.db.models.reminders import Reminder, ReminderStatus
from app.features.reminders.dispatcher import dispatch_due
from app.features.reminders.schemas import ReminderCreateIn, ReminderUpdateIn
from app.features.tasks.schemas import TaskCreateIn

NOW = datetime(2026, 10, 19, 8, 0, 0)


@pytest.fixture
def task(services, alice):
    return services.tasks.create(TaskCreateIn(title="Buy milk"), user_id=alice.id)


def _remind(services, user, *, fire_at, task_id=None, memo_id=None, title=None):
    return services.reminders.create(
        ReminderCreateIn(task_id=task_id, memo_id=memo_id, fire_at=fire_at, title=title),
        user_id=user.id,
    )


class TestCreate:
    def test_task_reminder(self, services, alice, task) -> None:
        reminder = _remind(services, alice, task_id=task.id, fire_at=NOW, title="milk")

        assert reminder.status == ReminderStatus.PENDING
        assert reminder.task_id == task.id
        assert reminder.memo_id is None
        assert reminder.dispatched_at is None

    def test_memo_reminder(self, services, alice, alice_memo) -> None:
        reminder = _remind(services, alice, memo_id=alice_memo.id, fire_at=NOW)

        assert reminder.memo_id == alice_memo.id

    @pytest.mark.parametrize("with_task, with_memo", [(True, True), (False, False)])
    def test_exactly_one_target(self, services, alice, task, alice_memo, with_task, with_memo) -> None:
        with pytest.raises(InvalidAssociationError) as excinfo:
            _remind(
                services,
                alice,
                task_id=task.id if with_task else None,
                memo_id=alice_memo.id if with_memo else None,
                fire_at=NOW,
            )
        assert excinfo.value.code == "INVALID_ASSOCIATION"
        assert excinfo.value.status_code == 422

    def test_target_must_exist_and_be_owned(self, services, alice, bob, task) -> None:
        with pytest.raises(NotFoundError):
            _remind(services, alice, task_id=9999, fire_at=NOW)
        with pytest.raises(ForbiddenError):
            _remind(services, bob, task_id=task.id, fire_at=NOW)


class TestDueAndDispatch:
    def test_due_reminders_are_pending_and_past(self, services, alice, task) -> None:
        early = _remind(services, alice, task_id=task.id, fire_at=NOW - timedelta(hours=2))
        on_time = _remind(services, alice, task_id=task.id, fire_at=NOW)
        _remind(services, alice, task_id=task.id, fire_at=NOW + timedelta(minutes=1))

        due = services.reminders.due_reminders(NOW)

        assert [r.id for r in due] == [early.id, on_time.id]

    def test_mark_dispatched_only_once(self, services, alice, task) -> None:
        reminder = _remind(services, alice, task_id=task.id, fire_at=NOW)

        dispatched = services.reminders.mark_dispatched(reminder.id, user_id=alice.id)
        assert dispatched.status == ReminderStatus.DISPATCHED
        assert dispatched.dispatched_at is not None
        assert services.reminders.due_reminders(NOW) == []

        with pytest.raises(AlreadyDispatchedError):
            services.reminders.mark_dispatched(reminder.id, user_id=alice.id)

    def test_dispatched_reminder_is_frozen(self, services, alice, task) -> None:
        reminder = _remind(services, alice, task_id=task.id, fire_at=NOW)
        services.reminders.mark_dispatched(reminder.id)

        with pytest.raises(AlreadyDispatchedError):
            services.reminders.update(
                reminder.id, ReminderUpdateIn(fire_at=NOW + timedelta(days=1)), user_id=alice.id
            )

    def test_pending_reminder_can_be_rescheduled(self, services, alice, task) -> None:
        reminder = _remind(services, alice, task_id=task.id, fire_at=NOW)

        moved = services.reminders.update(
            reminder.id, ReminderUpdateIn(fire_at=NOW + timedelta(days=1)), user_id=alice.id
        )

        assert moved.fire_at == NOW + timedelta(days=1)
        assert services.reminders.due_reminders(NOW) == []

    def test_reschedule_loses_to_a_concurrent_dispatch(self, services, alice, task, monkeypatch) -> None:
        reminder = _remind(services, alice, task_id=task.id, fire_at=NOW)
        read = services.reminders.get

        def read_then_dispatch(reminder_id, user_id):
            loaded = read(reminder_id, user_id)
            # le poller réclame le rappel juste après la lecture
            services.session.connection().execute(
                update(Reminder)
                .where(Reminder.id == reminder_id)
                .values(status=ReminderStatus.DISPATCHED, dispatched_at=NOW)
            )
            return loaded

        monkeypatch.setattr(services.reminders, "get", read_then_dispatch)

        with pytest.raises(AlreadyDispatchedError):
            services.reminders.update(
                reminder.id, ReminderUpdateIn(fire_at=NOW + timedelta(days=1)), user_id=alice.id
            )
        assert services.reminders.repo.get(reminder.id).fire_at == NOW


class TestDispatcher:
    def test_dispatch_due_notifies_each_reminder_once(self, services, alice, task) -> None:
        first = _remind(services, alice, task_id=task.id, fire_at=NOW - timedelta(minutes=5))
        second = _remind(services, alice, task_id=task.id, fire_at=NOW)
        notified = []

        report = dispatch_due(services.reminders, notified.append, now=NOW)
        again = dispatch_due(services.reminders, notified.append, now=NOW)

        assert report.dispatched == [first.id, second.id]
        assert [r.id for r in notified] == [first.id, second.id]
        assert again.dispatched == []

    def test_failing_notifier_is_reported(self, services, alice, task) -> None:
        reminder = _remind(services, alice, task_id=task.id, fire_at=NOW)

        def broken(_reminder):
            raise RuntimeError("smtp down")

        report = dispatch_due(services.reminders, broken, now=NOW)

        assert report.failed == [reminder.id]
        assert report.dispatched == []
        assert services.reminders.get(reminder.id, alice.id).status == ReminderStatus.DISPATCHED
