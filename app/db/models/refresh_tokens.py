from datetime import datetime
from typing import Optional

from sqlmodel import Field

from .base import BaseModelDB, utc_column


class RefreshToken(BaseModelDB, table=True):
    """
    Refresh token émis (identifié par son `jti`).

    Actif tant que `revoked_at` est NULL et `expires_at` dans le futur.
    `replaced_by` pointe vers le jti émis par la rotation ; NULL après un logout.
    """

    __table_args__ = {"sqlite_autoincrement": True}

    jti: str = Field(index=True, unique=True)
    user_id: int = Field(index=True, foreign_key="user.id")
    expires_at: datetime = utc_column()
    revoked_at: Optional[datetime] = utc_column(default=None)
    replaced_by: Optional[str] = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None
