"""
➡️ But : colonnes communes à toutes les tables VideoMemo.

BaseModelDB : clé primaire + horodatage (UTC naïf, cf. app.utils.clock).
OwnedModelDB : ajoute `user_id` ; chaque ligne appartient à un seul utilisateur
et n'est jamais visible par un autre.

Chaque table déclare `{"sqlite_autoincrement": True}` dans `__table_args__` :
SQLite ne redonne alors jamais l'id d'une ligne supprimée.

Les colonnes datetime sont typées `DateTime` explicitement (sans fuseau) :
les valeurs stockées sont des UTC naïfs.

🔹 Avantages :

Les repositories génériques (app.db.repositories.base) s'appuient sur ces colonnes.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from app.utils.clock import utcnow


def utc_column(**kwargs):
    """Field datetime UTC naïf (DateTime sans fuseau)."""
    return Field(sa_type=DateTime, **kwargs)


class BaseModelDB(SQLModel, table=False):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = utc_column(default_factory=utcnow, index=True)
    updated_at: datetime = utc_column(default_factory=utcnow)


class OwnedModelDB(BaseModelDB, table=False):
    user_id: int = Field(foreign_key="user.id", index=True, nullable=False)
