"""
➡️ But : Contenir la logique métier liée au compte utilisateur.

UserService : lecture du profil et suppression de compte.

La suppression est totale et atomique : aucun Task / Memo / Tag / Reminder
ne peut survivre en référençant un utilisateur supprimé.
"""

from typing import Dict

import structlog
from sqlalchemy import delete
from sqlmodel import Session

from app.core.errors import NotFoundError
from app.db.models.users import User
from app.db.models.refresh_tokens import RefreshToken
from app.db.repositories.users import UserRepository
from app.db.repositories.reminders import ReminderRepository
from app.db.repositories.tasks import TaskRepository
from app.db.repositories.memos import MemoRepository
from app.db.repositories.tags import TagRepository
from app.db.repositories.videos import VideoRepository
from app.db.repositories.themes import ThemeRepository

log = structlog.get_logger(__name__)


class UserService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = UserRepository(session)

    def get(self, user_id: int) -> User:
        user = self.repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def delete_account(self, user_id: int) -> Dict[str, int]:
        """Supprime l'utilisateur et tout ce qu'il possède, en une transaction."""
        user = self.get(user_id)
        memos = MemoRepository(self.session)
        deleted: Dict[str, int] = {}
        try:
            # ordre : des feuilles vers les racines (FKs)
            deleted["reminders"] = ReminderRepository(self.session).delete_for_user(user_id)
            deleted["tasks"] = TaskRepository(self.session).delete_for_user(user_id)
            deleted["memo_tags"] = memos.clear_tags(memos.ids_for_user(user_id))
            deleted["memos"] = memos.delete_for_user(user_id)
            deleted["tags"] = TagRepository(self.session).delete_for_user(user_id)
            deleted["videos"] = VideoRepository(self.session).delete_for_user(user_id)
            deleted["themes"] = ThemeRepository(self.session).delete_for_user(user_id)
            deleted["refresh_tokens"] = self.session.exec(
                delete(RefreshToken).where(RefreshToken.user_id == user_id)
            ).rowcount
            self.repo.delete(user, commit=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        log.info("account_deleted", user_id=user_id, **deleted)
        return deleted
