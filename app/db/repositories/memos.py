from typing import Iterable, Optional, Sequence, Tuple
from sqlalchemy import delete
from sqlmodel import select, func

from app.db.repositories.base import OwnedRepository
from app.db.models.memos import Memo, MemoTag
from app.db.models.tags import Tag


class MemoRepository(OwnedRepository[Memo]):
    """CRUD Mémos + liaison aux tags."""
    model = Memo

    def search(
        self,
        user_id: int,
        *,
        video_id: Optional[int] = None,
        tag: Optional[str] = None,
        q: Optional[str] = None,
        important: Optional[bool] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[Sequence[Memo], int]:
        """
        Mémos de l'utilisateur + total.
        Tri : par vidéo puis position (timestamp_sec) si video_id est fourni, sinon plus récents d'abord.
        """
        conditions = [self.model.user_id == user_id]
        if video_id is not None:
            conditions.append(self.model.video_id == video_id)
        if q:
            conditions.append(self.model.content.ilike(f"%{q}%"))
        if important is not None:
            conditions.append(self.model.is_important.is_(important))
        if tag:
            tagged = (
                select(MemoTag.memo_id)
                .join(Tag, Tag.id == MemoTag.tag_id)
                .where(Tag.user_id == user_id)
                .where(Tag.name == tag)
            )
            conditions.append(self.model.id.in_(tagged))

        stmt = select(self.model).where(*conditions)
        if video_id is not None:
            stmt = stmt.order_by(self.model.timestamp_sec.is_(None), self.model.timestamp_sec.asc(), self.model.id.asc())
        else:
            stmt = stmt.order_by(self.model.created_at.desc(), self.model.id.desc())

        items = self.session.exec(stmt.offset(offset).limit(limit)).all()
        total = self.session.exec(select(func.count(self.model.id)).where(*conditions)).one()
        return items, total

    def ids_for_video(self, video_id: int) -> Sequence[int]:
        return self.session.exec(select(self.model.id).where(self.model.video_id == video_id)).all()

    def ids_for_user(self, user_id: int) -> Sequence[int]:
        return self.session.exec(select(self.model.id).where(self.model.user_id == user_id)).all()

    # ---------- TAGS ----------

    def set_tags(self, memo_id: int, tag_ids: Iterable[int]) -> None:
        """Remplace l'ensemble des tags du mémo (sans commit)."""
        self.clear_tags([memo_id])
        for tag_id in set(tag_ids):
            self.session.add(MemoTag(memo_id=memo_id, tag_id=tag_id))
        self.session.flush()

    def clear_tags(self, memo_ids: Iterable[int]) -> int:
        memo_ids = list(memo_ids)
        if not memo_ids:
            return 0
        result = self.session.exec(delete(MemoTag).where(MemoTag.memo_id.in_(memo_ids)))
        return result.rowcount

    def delete_many(self, memo_ids: Iterable[int]) -> int:
        memo_ids = list(memo_ids)
        if not memo_ids:
            return 0
        result = self.session.exec(delete(self.model).where(self.model.id.in_(memo_ids)))
        return result.rowcount
