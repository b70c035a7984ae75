from typing import Optional

from sqlalchemy import func
from sqlmodel import select

from app.db.models.users import User
from app.db.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Comptes : lookup par email (login) ou par username (unicité à l'inscription)."""
    model = User

    def get_by_email(self, email: str) -> Optional[User]:
        # les emails sont stockés en minuscules (validator de RegisterIn)
        return self.session.exec(
            select(User).where(User.email == email.strip().lower())
        ).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(
            select(User).where(func.lower(User.username) == username.strip().lower())
        ).first()
