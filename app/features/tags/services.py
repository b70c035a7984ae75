from typing import Optional, Sequence

from app.db.models.tags import Tag
from app.db.repositories.tags import TagRepository
from app.features.ownership import get_owned_or_raise
from app.features.tags.schemas import TagUpdateIn


class TagService:
    """Tags de l'utilisateur (créés implicitement via les mémos)."""

    def __init__(self, repo: TagRepository):
        self.repo = repo

    def list(self, user_id: int, *, q: Optional[str] = None, limit: int = 100) -> Sequence[Tag]:
        return self.repo.search(user_id, q=q, limit=limit)

    def update(self, tag_id: int, payload: TagUpdateIn, *, user_id: int) -> Tag:
        tag = get_owned_or_raise(self.repo, tag_id, user_id)
        return self.repo.update(tag, **payload.model_dump(exclude_unset=True))
