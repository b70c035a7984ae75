from typing import Optional
from sqlmodel import Field

from .base import OwnedModelDB


class Theme(OwnedModelDB, table=True):
    """Thèmes créés par un utilisateur pour regrouper ses vidéos."""

    __table_args__ = {"sqlite_autoincrement": True}

    name: str = Field(index=True, description="Nom du thème")
    description: Optional[str] = Field(default=None, description="Description du thème")
    color: Optional[str] = Field(default=None, description="Couleur hexadécimale (#RRGGBB)")
