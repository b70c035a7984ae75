"""Tests for account deletion: everything the user owns goes, other users are untouched."""

from datetime import datetime

from sqlmodel import select

from app.db.models.memos import Memo, MemoTag
from app.db.models.reminders import Reminder
from app.db.models.tags import Tag
from app.db.models.tasks import Task
from app.db.models.users import User
from app.db.models.videos import Video
from app.features.memos.schemas import MemoCreateIn
from app.features.reminders.schemas import ReminderCreateIn
from app.features.tasks.schemas import TaskCreateIn, TaskFromMemoIn
from app.features.users.services import UserService
from app.features.videos.schemas import VideoSaveIn


def _owned(session, model, user_id):
    return session.exec(select(model).where(model.user_id == user_id)).all()


class TestDeleteAccount:
    def test_cascade_removes_owned_rows_only(self, session, services, alice, bob, alice_memo) -> None:
        task = services.linker.create_from_memo(alice_memo.id, TaskFromMemoIn(), user_id=alice.id)
        services.reminders.create(
            ReminderCreateIn(task_id=task.id, fire_at=datetime(2026, 10, 20)), user_id=alice.id
        )
        bob_video = services.videos.save(VideoSaveIn(youtube_url="9bZkp7q19f0"), user_id=bob.id)
        services.memos.create(
            MemoCreateIn(video_id=bob_video.id, content="bob's note", tags=["python"]), user_id=bob.id
        )
        services.tasks.create(TaskCreateIn(title="bob's task"), user_id=bob.id)
        alice_id, bob_id = alice.id, bob.id

        deleted = UserService(session).delete_account(alice_id)

        assert deleted["tasks"] == 1
        assert deleted["memos"] == 1
        assert deleted["reminders"] == 1
        assert deleted["memo_tags"] == 1
        assert session.get(User, alice_id) is None
        for model in (Task, Memo, Tag, Video, Reminder):
            assert _owned(session, model, alice_id) == []

        assert len(_owned(session, Task, bob_id)) == 1
        assert len(_owned(session, Memo, bob_id)) == 1
        assert len(_owned(session, Tag, bob_id)) == 1
        assert len(session.exec(select(MemoTag)).all()) == 1
