from typing import Optional, Sequence

import structlog

from app.core.errors import DuplicateResourceError
from app.db.repositories.themes import ThemeRepository
from app.db.models.themes import Theme
from app.features.ownership import get_owned_or_raise
from app.features.themes.schemas import ThemeCreateIn, ThemeUpdateIn

log = structlog.get_logger(__name__)


class ThemeService:
    """
    Logique métier pour Theme (regroupement de vidéos).
    - Owner uniquement : CRUD sur ses thèmes, nom unique par utilisateur.
    - Supprimer un thème détache ses vidéos (elles ne sont pas supprimées).
    """

    def __init__(self, repo: ThemeRepository):
        self.repo = repo

    # -------- Reads --------

    def list_mine(self, user_id: int, *, offset: int = 0, limit: int = 100, q: Optional[str] = None) -> Sequence[Theme]:
        return self.repo.list_by_owner(user_id, offset=offset, limit=limit, q=q)

    def get(self, theme_id: int, user_id: int) -> Theme:
        return get_owned_or_raise(self.repo, theme_id, user_id)

    # -------- Writes --------

    def create(self, payload: ThemeCreateIn, *, user_id: int) -> Theme:
        if self.repo.get_by_name(payload.name, user_id):
            raise DuplicateResourceError("Theme name already used")
        theme = self.repo.create(user_id=user_id, **payload.model_dump())
        log.info("theme_created", theme_id=theme.id, user_id=user_id)
        return theme

    def update(self, theme_id: int, payload: ThemeUpdateIn, *, user_id: int) -> Theme:
        theme = self.get(theme_id, user_id)
        changes = payload.model_dump(exclude_unset=True)
        if "name" in changes and changes["name"] is None:
            changes.pop("name")
        if changes.get("name") and changes["name"] != theme.name and self.repo.get_by_name(changes["name"], user_id):
            raise DuplicateResourceError("Theme name already used")
        return self.repo.update(theme, **changes)

    def delete(self, theme_id: int, *, user_id: int) -> None:
        theme = self.get(theme_id, user_id)
        self.repo.detach_videos(theme.id)
        self.repo.delete(theme)
        log.info("theme_deleted", theme_id=theme_id, user_id=user_id)
