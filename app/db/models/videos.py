from datetime import datetime
from typing import Optional
from sqlmodel import Field
from sqlalchemy import UniqueConstraint

from .base import OwnedModelDB, utc_column


class Video(OwnedModelDB, table=True):
    """Référence vers une vidéo YouTube sauvegardée par un utilisateur."""

    __table_args__ = (
        UniqueConstraint("user_id", "youtube_id", name="uq_video_user_youtube"),
        {"sqlite_autoincrement": True},
    )

    youtube_id: str = Field(index=True, max_length=11, description="Identifiant YouTube (11 caractères)")
    youtube_url: str = Field(description="URL canonique de la vidéo")
    title: Optional[str] = Field(default=None, description="Titre saisi par l'utilisateur")
    theme_id: Optional[int] = Field(default=None, foreign_key="theme.id", index=True)

    # Suivi de visionnage (POST /videos/{id}/watch)
    last_watched_at: Optional[datetime] = utc_column(default=None)
    watch_count: int = Field(default=0, nullable=False)
