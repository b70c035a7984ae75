from typing import Optional

from sqlalchemy import update
from sqlmodel import select

from app.db.models.refresh_tokens import RefreshToken
from app.db.repositories.base import BaseRepository
from app.utils.clock import utcnow


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """
    Registre serveur des refresh tokens (un enregistrement par `jti` émis).

    Les révocations passent par des UPDATE conditionnels (`revoked_at IS NULL`)
    pour qu'une rotation concurrente ne puisse réussir qu'une fois.
    """
    model = RefreshToken

    def get_by_jti(self, jti: str) -> Optional[RefreshToken]:
        return self.session.exec(select(RefreshToken).where(RefreshToken.jti == jti)).first()

    def _revoke_where(self, *criteria, replaced_by: Optional[str] = None) -> int:
        now = utcnow()
        result = self.session.exec(
            update(RefreshToken)
            .where(RefreshToken.revoked_at.is_(None), *criteria)
            .values(revoked_at=now, replaced_by=replaced_by, updated_at=now)
        )
        return result.rowcount

    def compare_and_revoke(self, jti: str, *, replaced_by: Optional[str] = None) -> bool:
        """Sans commit. False = déjà révoqué par un autre appel (rejeu)."""
        return self._revoke_where(RefreshToken.jti == jti, replaced_by=replaced_by) == 1

    def revoke(self, jti: str) -> None:
        """Logout : idempotent."""
        self._revoke_where(RefreshToken.jti == jti)
        self.session.commit()

    def revoke_all_for_user(self, user_id: int, *, commit: bool = True) -> int:
        revoked = self._revoke_where(
            RefreshToken.user_id == user_id,
            RefreshToken.expires_at > utcnow(),
        )
        if commit:
            self.session.commit()
        return revoked
