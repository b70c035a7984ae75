from typing import Optional, Sequence
from sqlalchemy import update
from sqlmodel import select, or_

from app.db.repositories.base import OwnedRepository
from app.db.models.themes import Theme
from app.db.models.videos import Video


class ThemeRepository(OwnedRepository[Theme]):
    """CRUD Themes + requêtes spécifiques."""
    model = Theme

    def get_by_name(self, name: str, user_id: int) -> Optional[Theme]:
        """Retourne un thème de l'utilisateur par son nom."""
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.name == name)
        ).first()

    def list_by_owner(
        self,
        user_id: int,
        *,
        offset: int = 0,
        limit: int = 100,
        q: Optional[str] = None,
    ) -> Sequence[Theme]:
        """
        Liste paginée des thèmes d'un utilisateur, triés par nom.
        - q : recherche insensible à la casse sur name/description
        """
        stmt = select(self.model).where(self.model.user_id == user_id)
        if q:
            like = f"%{q}%"
            stmt = stmt.where(
                or_(self.model.name.ilike(like), self.model.description.ilike(like))
            )
        stmt = stmt.order_by(self.model.name.asc()).offset(offset).limit(limit)
        return self.session.exec(stmt).all()

    def detach_videos(self, theme_id: int) -> int:
        """Les vidéos du thème supprimé restent, sans thème (sans commit)."""
        result = self.session.exec(
            update(Video).where(Video.theme_id == theme_id).values(theme_id=None)
        )
        return result.rowcount
