from datetime import datetime
from typing import Optional, Sequence, Tuple
from sqlalchemy import update
from sqlmodel import select, func

from app.db.repositories.base import OwnedRepository
from app.db.models.videos import Video
from app.db.models.tasks import Task
from app.utils.clock import utcnow


class VideoRepository(OwnedRepository[Video]):
    """CRUD Vidéos + requêtes spécifiques."""
    model = Video

    def get_by_youtube_id(self, user_id: int, youtube_id: str) -> Optional[Video]:
        return self.session.exec(
            select(self.model)
            .where(self.model.user_id == user_id)
            .where(self.model.youtube_id == youtube_id)
        ).first()

    def search(
        self,
        user_id: int,
        *,
        q: Optional[str] = None,
        theme_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> Tuple[Sequence[Video], int]:
        """Vidéos de l'utilisateur, les plus récentes d'abord, + total (avant pagination)."""
        conditions = [self.model.user_id == user_id]
        if q:
            conditions.append(self.model.title.ilike(f"%{q}%"))
        if theme_id is not None:
            conditions.append(self.model.theme_id == theme_id)

        items = self.session.exec(
            select(self.model)
            .where(*conditions)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(offset)
            .limit(limit)
        ).all()
        total = self.session.exec(select(func.count(self.model.id)).where(*conditions)).one()
        return items, total

    def detach_tasks(self, video_id: int) -> int:
        """Sans commit ; compte comme une écriture de tâche (version incrémentée)."""
        result = self.session.exec(
            update(Task)
            .where(Task.video_id == video_id)
            .values(video_id=None, version=Task.version + 1, updated_at=utcnow())
        )
        return result.rowcount

    def record_watch(self, video: Video, *, at: datetime) -> Video:
        """Incrément atomique de watch_count (deux visionnages simultanés comptent double)."""
        self.session.exec(
            update(Video)
            .where(Video.id == video.id)
            .values(watch_count=Video.watch_count + 1, last_watched_at=at, updated_at=at)
        )
        self.session.commit()
        self.session.refresh(video)
        return video
