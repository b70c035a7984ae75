from datetime import datetime
from typing import Callable, Optional

import structlog

from app.core.errors import ValidationError
from app.db.models.videos import Video
from app.db.repositories.videos import VideoRepository
from app.db.repositories.themes import ThemeRepository
from app.db.repositories.memos import MemoRepository
from app.db.repositories.reminders import ReminderRepository
from app.features.ownership import get_owned_or_raise
from app.features.videos.schemas import VideoSaveIn, VideoUpdateIn
from app.utils.clock import utcnow
from app.utils.youtube import extract_video_id, canonical_url

log = structlog.get_logger(__name__)


class VideoService:
    """
    Vidéos YouTube sauvegardées.
    - Sauvegarder deux fois la même vidéo renvoie la ligne existante (thème/titre mis à jour si fournis).
    - Supprimer une vidéo supprime ses mémos (et leurs rappels) ; les tâches dérivées restent.
    - Marquer comme vue : last_watched_at = maintenant, watch_count + 1.
    """

    def __init__(
        self,
        repo: VideoRepository,
        theme_repo: ThemeRepository,
        memo_repo: MemoRepository,
        reminder_repo: ReminderRepository,
        now_fn: Callable[[], datetime] = utcnow,
    ):
        self.repo = repo
        self.theme_repo = theme_repo
        self.memo_repo = memo_repo
        self.reminder_repo = reminder_repo
        self.now_fn = now_fn

    def _check_theme(self, theme_id: Optional[int], user_id: int) -> None:
        if theme_id is not None:
            get_owned_or_raise(self.theme_repo, theme_id, user_id)

    # -------- Reads --------

    def list(self, user_id: int, *, q: Optional[str] = None, theme_id: Optional[int] = None, offset: int = 0, limit: int = 20):
        items, total = self.repo.search(user_id, q=q, theme_id=theme_id, offset=offset, limit=limit)
        return {"items": items, "total": total}

    def get(self, video_id: int, user_id: int) -> Video:
        return get_owned_or_raise(self.repo, video_id, user_id)

    # -------- Writes --------

    def save(self, payload: VideoSaveIn, *, user_id: int) -> Video:
        youtube_id = extract_video_id(payload.youtube_url)
        if not youtube_id:
            raise ValidationError("Invalid YouTube URL", details=[{"field": "youtube_url", "message": "Invalid YouTube URL"}])
        self._check_theme(payload.theme_id, user_id)

        existing = self.repo.get_by_youtube_id(user_id, youtube_id)
        if existing:
            changes = payload.model_dump(include={"title", "theme_id"}, exclude_none=True)
            return self.repo.update(existing, **changes) if changes else existing

        video = self.repo.create(
            user_id=user_id,
            youtube_id=youtube_id,
            youtube_url=canonical_url(youtube_id),
            title=payload.title,
            theme_id=payload.theme_id,
        )
        log.info("video_saved", video_id=video.id, user_id=user_id, youtube_id=youtube_id)
        return video

    def update(self, video_id: int, payload: VideoUpdateIn, *, user_id: int) -> Video:
        video = self.get(video_id, user_id)
        changes = payload.model_dump(exclude_unset=True)
        self._check_theme(changes.get("theme_id"), user_id)
        return self.repo.update(video, **changes)

    def mark_watched(self, video_id: int, *, user_id: int) -> Video:
        video = self.get(video_id, user_id)
        video = self.repo.record_watch(video, at=self.now_fn())
        log.info("video_watched", video_id=video.id, user_id=user_id, watch_count=video.watch_count)
        return video

    def delete(self, video_id: int, *, user_id: int) -> None:
        video = self.get(video_id, user_id)
        session = self.repo.session
        try:
            memo_ids = list(self.memo_repo.ids_for_video(video.id))
            self.reminder_repo.delete_for_memos(memo_ids)
            self.memo_repo.clear_tags(memo_ids)
            self.memo_repo.delete_many(memo_ids)
            self.repo.detach_tasks(video.id)
            self.repo.delete(video, commit=False)
            session.commit()
        except Exception:
            session.rollback()
            raise
        log.info("video_deleted", video_id=video_id, user_id=user_id, memos=len(memo_ids))
