"""
➡️ But : Centraliser les dépendances réutilisables des routes.

Exemples :

get_task_service() : crée un TaskService à partir d'une session DB.

get_current_user_id() : résout le bearer token en identifiant utilisateur.

pagination() : paramètres communs offset et limit.

🔹 Avantages :

Routes plus propres (pas de code dupliqué).

Facile à injecter dans plusieurs endpoints (Depends()), et à surcharger dans les tests
(app.dependency_overrides[get_session]).
"""

from typing import Optional
from dataclasses import dataclass

from fastapi import Depends, Header, Query, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from app.core.config import settings, jwt_settings
from app.core.errors import UnauthenticatedError
from app.db.session import get_session

from app.db.repositories.users import UserRepository
from app.db.repositories.refresh_tokens import RefreshTokenRepository
from app.db.repositories.themes import ThemeRepository
from app.db.repositories.videos import VideoRepository
from app.db.repositories.tags import TagRepository
from app.db.repositories.memos import MemoRepository
from app.db.repositories.tasks import TaskRepository
from app.db.repositories.reminders import ReminderRepository

from app.features.authentication.services import AuthService
from app.features.users.services import UserService
from app.features.themes.services import ThemeService
from app.features.videos.services import VideoService
from app.features.tags.services import TagService
from app.features.memos.services import MemoService
from app.features.tasks.services import TaskService
from app.features.tasks.linker import MemoTaskLinker
from app.features.tasks.queries import TaskQueryService
from app.features.reminders.services import ReminderService


def pagination(
    offset: int = Query(0, ge=0, description="Nombre d'éléments à sauter", examples=[0]),
    limit: int = Query(20, ge=1, le=100, description="Taille de page", examples=[20]),
):
    return {"offset": offset, "limit": limit}


# -----------------------------
# Repositories
# -----------------------------
def get_theme_repository(session: Session = Depends(get_session)) -> ThemeRepository:
    return ThemeRepository(session)

def get_video_repository(session: Session = Depends(get_session)) -> VideoRepository:
    return VideoRepository(session)

def get_tag_repository(session: Session = Depends(get_session)) -> TagRepository:
    return TagRepository(session)

def get_memo_repository(session: Session = Depends(get_session)) -> MemoRepository:
    return MemoRepository(session)

def get_task_repository(session: Session = Depends(get_session)) -> TaskRepository:
    return TaskRepository(session)

def get_reminder_repository(session: Session = Depends(get_session)) -> ReminderRepository:
    return ReminderRepository(session)


# -----------------------------
# Users / Auth
# -----------------------------
def get_user_service(session: Session = Depends(get_session)) -> UserService:
    return UserService(session)


def get_auth_service(session: Session = Depends(get_session)) -> AuthService:
    return AuthService(
        user_repo=UserRepository(session),
        refresh_repo=RefreshTokenRepository(session),
        jwt_settings=jwt_settings,
    )


# -----------------------------
# Collaborators
# -----------------------------
def get_theme_service(theme_repo: ThemeRepository = Depends(get_theme_repository)) -> ThemeService:
    return ThemeService(theme_repo)

def get_video_service(
    video_repo: VideoRepository = Depends(get_video_repository),
    theme_repo: ThemeRepository = Depends(get_theme_repository),
    memo_repo: MemoRepository = Depends(get_memo_repository),
    reminder_repo: ReminderRepository = Depends(get_reminder_repository),
) -> VideoService:
    return VideoService(
        repo=video_repo,
        theme_repo=theme_repo,
        memo_repo=memo_repo,
        reminder_repo=reminder_repo,
    )

def get_tag_service(tag_repo: TagRepository = Depends(get_tag_repository)) -> TagService:
    return TagService(tag_repo)

def get_memo_service(
    memo_repo: MemoRepository = Depends(get_memo_repository),
    tag_repo: TagRepository = Depends(get_tag_repository),
    video_repo: VideoRepository = Depends(get_video_repository),
    reminder_repo: ReminderRepository = Depends(get_reminder_repository),
) -> MemoService:
    return MemoService(
        repo=memo_repo,
        tag_repo=tag_repo,
        video_repo=video_repo,
        reminder_repo=reminder_repo,
    )


# -----------------------------
# Tasks / Reminders
# -----------------------------
def get_task_service(
    task_repo: TaskRepository = Depends(get_task_repository),
    video_repo: VideoRepository = Depends(get_video_repository),
    memo_repo: MemoRepository = Depends(get_memo_repository),
) -> TaskService:
    return TaskService(repo=task_repo, video_repo=video_repo, memo_repo=memo_repo)

def get_task_query_service(task_repo: TaskRepository = Depends(get_task_repository)) -> TaskQueryService:
    return TaskQueryService(
        task_repo,
        upcoming_window=settings.upcoming_window,
        dashboard_limit=settings.DASHBOARD_LIST_LIMIT,
        timeout_seconds=settings.QUERY_TIMEOUT_SECONDS,
    )

def get_memo_task_linker(
    memo_repo: MemoRepository = Depends(get_memo_repository),
    task_svc: TaskService = Depends(get_task_service),
) -> MemoTaskLinker:
    return MemoTaskLinker(memo_repo=memo_repo, tasks=task_svc)

def get_reminder_service(
    reminder_repo: ReminderRepository = Depends(get_reminder_repository),
    task_repo: TaskRepository = Depends(get_task_repository),
    memo_repo: MemoRepository = Depends(get_memo_repository),
) -> ReminderService:
    return ReminderService(repo=reminder_repo, task_repo=task_repo, memo_repo=memo_repo)


# -----------------------------
# Authentication data
# -----------------------------
# auto_error=False : l'absence de header produit notre enveloppe UNAUTHENTICATED
bearer_scheme = HTTPBearer(auto_error=False)

def get_access_token_from_bearer(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> str:
    if not credentials or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise UnauthenticatedError()
    return credentials.credentials


def get_current_user_id(
    access_token: str = Depends(get_access_token_from_bearer),
    auth_svc: AuthService = Depends(get_auth_service),
) -> int:
    return auth_svc.get_current_user(access_token=access_token).id


@dataclass
class ClientContext:
    ip: Optional[str]
    user_agent: Optional[str]

def get_client_ip_and_ua(
    x_forwarded_for: Optional[str] = Header(default=None, alias="X-Forwarded-For"),
    x_real_ip: Optional[str] = Header(default=None, alias="X-Real-IP"),
    user_agent: Optional[str] = Header(default=None, alias="User-Agent"),
) -> ClientContext:
    """
    Récupère l'IP depuis X-Forwarded-For > X-Real-IP (si derrière un proxy),
    et le User-Agent (utile pour audit des refresh tokens).
    """
    ip = None
    if x_forwarded_for:
        ip = x_forwarded_for.split(",")[0].strip()
    elif x_real_ip:
        ip = x_real_ip
    return ClientContext(ip=ip, user_agent=user_agent)
