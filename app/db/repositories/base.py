"""
➡️ But : persistance générique partagée par tous les repositories.

BaseRepository : get / create / update / delete sur `model`.
OwnedRepository : idem pour les tables qui portent une colonne `user_id`.

Chaque écriture accepte `commit=False` : le service regroupe alors plusieurs
écritures dans une seule transaction et committe lui-même.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import delete
from sqlmodel import SQLModel, Session

from app.utils.clock import utcnow

ModelT = TypeVar("ModelT", bound=SQLModel)


class BaseRepository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def _finish(self, entity: Optional[ModelT], commit: bool) -> None:
        if commit:
            self.session.commit()
            if entity is not None:
                self.session.refresh(entity)
        else:
            # flush : les ids sont disponibles pour les FKs avant le commit
            self.session.flush()

    def get(self, id_: Any) -> Optional[ModelT]:
        return self.session.get(self.model, id_)

    def create(self, *, commit: bool = True, **fields) -> ModelT:
        entity = self.model(**fields)
        self.session.add(entity)
        self._finish(entity, commit)
        return entity

    def update(self, entity: ModelT, *, commit: bool = True, **changes) -> ModelT:
        """Applique `changes` ; `updated_at` suit automatiquement sauf s'il est fourni."""
        for key, value in changes.items():
            setattr(entity, key, value)
        if "updated_at" not in changes and hasattr(entity, "updated_at"):
            entity.updated_at = utcnow()
        self.session.add(entity)
        self._finish(entity, commit)
        return entity

    def delete(self, entity: ModelT, *, commit: bool = True) -> None:
        self.session.delete(entity)
        self._finish(None, commit)


class OwnedRepository(BaseRepository[ModelT]):
    """Table possédée par un utilisateur."""

    def delete_for_user(self, user_id: int) -> int:
        """DELETE en masse, sans commit (suppression de compte)."""
        result = self.session.exec(delete(self.model).where(self.model.user_id == user_id))
        return result.rowcount
