"""
➡️ But : Remplir une base de démo à partir de app/db/seed_data.yaml.

Ordre : utilisateurs -> thèmes -> vidéos -> mémos (+ tags) -> tâches -> rappels.
Les dates du YAML sont relatives (`due_in_days`, `fire_in_hours`) pour que la
démo ait toujours des tâches en retard / à venir, quel que soit le jour du seed.

Chaque étape est idempotente : un utilisateur déjà présent n'est pas re-seedé.
"""

from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from sqlmodel import Session

from app.db.models.tasks import TaskPriority, TaskStatus
from app.db.models.users import User
from app.db.repositories.memos import MemoRepository
from app.db.repositories.reminders import ReminderRepository
from app.db.repositories.tags import TagRepository
from app.db.repositories.tasks import TaskRepository
from app.db.repositories.themes import ThemeRepository
from app.db.repositories.users import UserRepository
from app.db.repositories.videos import VideoRepository
from app.features.memos.schemas import MemoCreateIn
from app.features.memos.services import MemoService
from app.features.reminders.schemas import ReminderCreateIn
from app.features.reminders.services import ReminderService
from app.features.tasks.linker import MemoTaskLinker
from app.features.tasks.schemas import TaskCreateIn, TaskFromMemoIn, TaskUpdateIn
from app.features.tasks.services import TaskService
from app.features.themes.schemas import ThemeCreateIn
from app.features.themes.services import ThemeService
from app.features.videos.schemas import VideoSaveIn
from app.features.videos.services import VideoService
from app.security.password import hash_password
from app.utils.clock import utcnow


# -----------------------------
# YAML loader
# -----------------------------
def load_seed_yaml(seed_path: str | Path) -> Dict[str, Any]:
    path = Path(seed_path)
    if not path.exists():
        raise FileNotFoundError(f"Seed YAML introuvable: {path}")

    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Le YAML de seed doit contenir un objet racine (mapping).")
    return data


def _days(value: Optional[float]):
    return None if value is None else utcnow() + timedelta(days=value)


# -----------------------------
# Seed Users
# -----------------------------
def seed_users(session: Session, data: Dict[str, Any]) -> Dict[str, User]:
    """key YAML -> User (créé ou existant)."""
    repo = UserRepository(session)
    users: Dict[str, User] = {}
    for u in data.get("users", []):
        existing = repo.get_by_email(u["email"])
        if existing:
            print(f"ℹ️ Utilisateur déjà présent: {u['email']}")
            users[u["key"]] = existing
            continue
        users[u["key"]] = repo.create(
            email=u["email"].lower(),
            username=u["username"],
            hashed_password=hash_password(u["password"]),
        )
        print(f"✅ Utilisateur inséré: {u['email']}")
    return users


# -----------------------------
# Seed contenu d'un utilisateur
# -----------------------------
def seed_content(session: Session, user: User, content: Dict[str, Any]) -> None:
    theme_svc = ThemeService(ThemeRepository(session))
    video_svc = VideoService(
        repo=VideoRepository(session),
        theme_repo=ThemeRepository(session),
        memo_repo=MemoRepository(session),
        reminder_repo=ReminderRepository(session),
    )
    memo_svc = MemoService(
        repo=MemoRepository(session),
        tag_repo=TagRepository(session),
        video_repo=VideoRepository(session),
        reminder_repo=ReminderRepository(session),
    )
    task_svc = TaskService(
        repo=TaskRepository(session),
        video_repo=VideoRepository(session),
        memo_repo=MemoRepository(session),
    )
    linker = MemoTaskLinker(memo_repo=MemoRepository(session), tasks=task_svc)
    reminder_svc = ReminderService(
        repo=ReminderRepository(session),
        task_repo=TaskRepository(session),
        memo_repo=MemoRepository(session),
    )

    themes = {
        t["key"]: theme_svc.create(
            ThemeCreateIn(name=t["name"], description=t.get("description"), color=t.get("color")),
            user_id=user.id,
        )
        for t in content.get("themes", [])
    }

    memos: Dict[str, int] = {}
    for v in content.get("videos", []):
        theme = themes.get(v.get("theme_key"))
        video = video_svc.save(
            VideoSaveIn(youtube_url=v["url"], title=v.get("title"), theme_id=theme.id if theme else None),
            user_id=user.id,
        )
        for m in v.get("memos", []):
            memo = memo_svc.create(
                MemoCreateIn(
                    video_id=video.id,
                    content=m["content"],
                    timestamp_sec=m.get("timestamp_sec"),
                    is_important=bool(m.get("important", False)),
                    tags=m.get("tags", []),
                ),
                user_id=user.id,
            )
            if "key" in m:
                memos[m["key"]] = memo.id

    tasks: Dict[str, int] = {}
    for t in content.get("tasks", []):
        priority = TaskPriority(t.get("priority", "medium"))
        due_date = _days(t.get("due_in_days"))
        if t.get("memo_key"):
            task = linker.create_from_memo(
                memos[t["memo_key"]],
                TaskFromMemoIn(title=t.get("title"), priority=priority, due_date=due_date),
                user_id=user.id,
            )
        else:
            task = task_svc.create(
                TaskCreateIn(title=t["title"], description=t.get("description"), priority=priority, due_date=due_date),
                user_id=user.id,
            )
        status = TaskStatus(t.get("status", "pending"))
        if status == TaskStatus.COMPLETED:
            task_svc.complete(task.id, user_id=user.id)
        elif status != TaskStatus.PENDING:
            task_svc.update(task.id, TaskUpdateIn(status=status), user_id=user.id)
        if "key" in t:
            tasks[t["key"]] = task.id

    for r in content.get("reminders", []):
        reminder_svc.create(
            ReminderCreateIn(
                task_id=tasks.get(r.get("task_key")),
                memo_id=memos.get(r.get("memo_key")),
                fire_at=utcnow() + timedelta(hours=r.get("fire_in_hours", 1)),
                title=r.get("title"),
            ),
            user_id=user.id,
        )

    print(
        f"✅ {user.username}: {len(themes)} thèmes, {len(content.get('videos', []))} vidéos, "
        f"{len(tasks)} tâches nommées, {len(content.get('reminders', []))} rappels."
    )


# -----------------------------
# Entrée principale
# -----------------------------
def seed_all(session: Session, seed_path: str | Path) -> None:
    data = load_seed_yaml(seed_path)
    existing = {u["key"] for u in data.get("users", []) if UserRepository(session).get_by_email(u["email"])}
    users = seed_users(session, data)

    content: List[Dict[str, Any]] = data.get("content", [])
    for block in content:
        key = block["owner_key"]
        if key in existing:
            print(f"ℹ️ Contenu déjà seedé pour '{key}', ignoré.")
            continue
        seed_content(session, users[key], block)
