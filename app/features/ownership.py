from typing import Optional, TypeVar

import structlog

from app.core.errors import ForbiddenError, NotFoundError
from app.db.repositories.base import BaseRepository

log = structlog.get_logger(__name__)

EntityT = TypeVar("EntityT")


def get_owned_or_raise(
    repo: BaseRepository,
    entity_id: int,
    user_id: int,
    *,
    not_found: Optional[NotFoundError] = None,
):
    """
    Charge une entité et vérifie que user_id en est propriétaire.
    - inexistante            -> NotFoundError (ou `not_found` fourni)
    - appartient à un autre  -> ForbiddenError, journalisé comme signal de sécurité
    """
    entity = repo.get(entity_id)
    if entity is None:
        raise not_found or NotFoundError(f"{repo.model.__name__} not found")
    if entity.user_id != user_id:
        log.warning(
            "ownership_violation",
            resource=repo.model.__tablename__,
            resource_id=entity_id,
            user_id=user_id,
        )
        raise ForbiddenError()
    return entity
