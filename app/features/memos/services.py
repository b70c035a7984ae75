from typing import List, Optional, Sequence

import structlog

from app.db.models.memos import Memo
from app.db.repositories.memos import MemoRepository
from app.db.repositories.tags import TagRepository
from app.db.repositories.videos import VideoRepository
from app.db.repositories.reminders import ReminderRepository
from app.features.ownership import get_owned_or_raise
from app.features.memos.schemas import MemoCreateIn, MemoUpdateIn, MemoOut, TagRefOut

log = structlog.get_logger(__name__)


class MemoService:
    """
    Mémos horodatés sur une vidéo, avec tags (trouvés ou créés par nom).

    Supprimer un mémo supprime ses liaisons de tags et ses rappels, mais PAS les
    tâches qui en sont dérivées : elles gardent memo_id comme provenance historique.
    """

    def __init__(
        self,
        repo: MemoRepository,
        tag_repo: TagRepository,
        video_repo: VideoRepository,
        reminder_repo: ReminderRepository,
    ):
        self.repo = repo
        self.tag_repo = tag_repo
        self.video_repo = video_repo
        self.reminder_repo = reminder_repo

    # -------- Helpers --------

    def _to_out(self, memos: Sequence[Memo]) -> List[MemoOut]:
        tags = self.tag_repo.tags_by_memo(m.id for m in memos)
        return [
            MemoOut(
                **m.model_dump(),
                tags=[TagRefOut.model_validate(t) for t in tags.get(m.id, [])],
            )
            for m in memos
        ]

    def _apply_tags(self, memo_id: int, user_id: int, names: List[str]) -> None:
        tag_ids = [self.tag_repo.find_or_create(user_id, name).id for name in names]
        self.repo.set_tags(memo_id, tag_ids)

    # -------- Reads --------

    def list(
        self,
        user_id: int,
        *,
        video_id: Optional[int] = None,
        tag: Optional[str] = None,
        q: Optional[str] = None,
        important: Optional[bool] = None,
        offset: int = 0,
        limit: int = 20,
    ):
        items, total = self.repo.search(
            user_id, video_id=video_id, tag=tag, q=q, important=important, offset=offset, limit=limit
        )
        return {"items": self._to_out(items), "total": total}

    def get_entity(self, memo_id: int, user_id: int) -> Memo:
        return get_owned_or_raise(self.repo, memo_id, user_id)

    def get(self, memo_id: int, user_id: int) -> MemoOut:
        return self._to_out([self.get_entity(memo_id, user_id)])[0]

    # -------- Writes --------

    def create(self, payload: MemoCreateIn, *, user_id: int) -> MemoOut:
        get_owned_or_raise(self.video_repo, payload.video_id, user_id)
        session = self.repo.session
        try:
            memo = self.repo.create(
                commit=False,
                user_id=user_id,
                video_id=payload.video_id,
                content=payload.content,
                timestamp_sec=payload.timestamp_sec,
                is_important=payload.is_important,
            )
            if payload.tags:
                self._apply_tags(memo.id, user_id, payload.tags)
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(memo)
        log.info("memo_created", memo_id=memo.id, video_id=memo.video_id, user_id=user_id)
        return self._to_out([memo])[0]

    def update(self, memo_id: int, payload: MemoUpdateIn, *, user_id: int) -> MemoOut:
        memo = self.get_entity(memo_id, user_id)
        changes = payload.model_dump(exclude_unset=True)
        tags = changes.pop("tags", None)
        if changes.get("content", "") is None:
            changes.pop("content")
        if changes.get("is_important", False) is None:
            changes.pop("is_important")

        session = self.repo.session
        try:
            self.repo.update(memo, commit=False, **changes)
            if tags is not None:
                self._apply_tags(memo.id, user_id, tags)
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(memo)
        return self._to_out([memo])[0]

    def delete(self, memo_id: int, *, user_id: int) -> None:
        memo = self.get_entity(memo_id, user_id)
        session = self.repo.session
        try:
            self.reminder_repo.delete_for_memos([memo.id])
            self.repo.clear_tags([memo.id])
            self.repo.delete(memo, commit=False)
            session.commit()
        except Exception:
            session.rollback()
            raise
        log.info("memo_deleted", memo_id=memo_id, user_id=user_id)
