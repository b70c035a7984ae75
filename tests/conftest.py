"""Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database. StaticPool keeps a single
connection so that several sessions (and the TestClient worker threads) see the
same data.
"""

import os

# must run before `app.core.config` is imported
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session

from app.db.session import build_engine, get_session, init_db
from app.db.models.users import User
from app.db.repositories.memos import MemoRepository
from app.db.repositories.reminders import ReminderRepository
from app.db.repositories.tags import TagRepository
from app.db.repositories.tasks import TaskRepository
from app.db.repositories.themes import ThemeRepository
from app.db.repositories.videos import VideoRepository
from app.features.memos.schemas import MemoCreateIn
from app.features.memos.services import MemoService
from app.features.reminders.services import ReminderService
from app.features.tasks.linker import MemoTaskLinker
from app.features.tasks.queries import TaskQueryService
from app.features.tasks.services import TaskService
from app.features.themes.services import ThemeService
from app.features.videos.schemas import VideoSaveIn
from app.features.videos.services import VideoService


@pytest.fixture
def engine():
    """In-memory engine with all tables created."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def build_services(session: Session) -> SimpleNamespace:
    """Wire every service on one session, the way the API dependencies do."""
    task_repo = TaskRepository(session)
    video_repo = VideoRepository(session)
    memo_repo = MemoRepository(session)
    reminder_repo = ReminderRepository(session)
    tasks = TaskService(repo=task_repo, video_repo=video_repo, memo_repo=memo_repo)
    return SimpleNamespace(
        session=session,
        tasks=tasks,
        queries=TaskQueryService(task_repo, upcoming_window=timedelta(days=7), dashboard_limit=5),
        linker=MemoTaskLinker(memo_repo=memo_repo, tasks=tasks),
        reminders=ReminderService(repo=reminder_repo, task_repo=task_repo, memo_repo=memo_repo),
        themes=ThemeService(ThemeRepository(session)),
        videos=VideoService(
            repo=video_repo,
            theme_repo=ThemeRepository(session),
            memo_repo=memo_repo,
            reminder_repo=reminder_repo,
        ),
        memos=MemoService(
            repo=memo_repo,
            tag_repo=TagRepository(session),
            video_repo=video_repo,
            reminder_repo=reminder_repo,
        ),
    )


@pytest.fixture
def services(session) -> SimpleNamespace:
    return build_services(session)


def _make_user(session: Session, name: str) -> User:
    # hash factice : les tests de service ne passent pas par le login
    user = User(email=f"{name}@example.com", username=name, hashed_password="not-a-hash")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def alice(session) -> User:
    return _make_user(session, "alice")


@pytest.fixture
def bob(session) -> User:
    return _make_user(session, "bob")


@pytest.fixture
def alice_memo(services, alice):
    """A video with one tagged memo owned by alice."""
    video = services.videos.save(
        VideoSaveIn(youtube_url="https://youtu.be/dQw4w9WgXcQ", title="Async IO"),
        user_id=alice.id,
    )
    return services.memos.create(
        MemoCreateIn(
            video_id=video.id,
            content="Revoir asyncio.gather\nvs TaskGroup",
            timestamp_sec=754,
            tags=["python"],
        ),
        user_id=alice.id,
    )


@pytest.fixture
def client(engine):
    """TestClient whose requests run on the test engine."""
    from app.main import app

    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user through the API; returns auth headers, tokens and profile."""

    def _register(name: str) -> dict:
        response = client.post(
            "/api/auth/register",
            json={"email": f"{name}@example.com", "username": name, "password": f"{name}-password"},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {
            "headers": {"Authorization": f"Bearer {data['access_token']}"},
            "refresh_token": data["refresh_token"],
            "user": data["user"],
        }

    return _register
