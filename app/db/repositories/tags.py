from typing import Dict, Iterable, List, Optional, Sequence
from sqlmodel import select

from app.db.repositories.base import OwnedRepository
from app.db.models.tags import Tag
from app.db.models.memos import MemoTag


class TagRepository(OwnedRepository[Tag]):
    model = Tag

    def get_by_name(self, user_id: int, name: str) -> Optional[Tag]:
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.name == name)
        ).first()

    def find_or_create(self, user_id: int, name: str) -> Tag:
        """Retourne le tag existant ou le crée (sans commit)."""
        tag = self.get_by_name(user_id, name)
        if tag:
            return tag
        return self.create(commit=False, user_id=user_id, name=name)

    def search(self, user_id: int, *, q: Optional[str] = None, limit: int = 100) -> Sequence[Tag]:
        stmt = select(self.model).where(self.model.user_id == user_id)
        if q:
            stmt = stmt.where(self.model.name.ilike(f"%{q}%"))
        return self.session.exec(stmt.order_by(self.model.name.asc()).limit(limit)).all()

    def tags_by_memo(self, memo_ids: Iterable[int]) -> Dict[int, List[Tag]]:
        """memo_id -> [Tag] en une seule requête."""
        memo_ids = list(memo_ids)
        out: Dict[int, List[Tag]] = {memo_id: [] for memo_id in memo_ids}
        if not memo_ids:
            return out
        rows = self.session.exec(
            select(MemoTag.memo_id, Tag)
            .join(Tag, Tag.id == MemoTag.tag_id)
            .where(MemoTag.memo_id.in_(memo_ids))
            .order_by(Tag.name.asc())
        ).all()
        for memo_id, tag in rows:
            out[memo_id].append(tag)
        return out
