from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from app.api.dependencies import get_current_user_id, get_tag_service
from app.core.responses import Envelope, ok
from app.features.tags.schemas import TagUpdateIn, TagOut
from app.features.tags.services import TagService

router = APIRouter(
    prefix="/tags",
    tags=["tags"],
    responses={404: {"description": "Not Found"}},
)


@router.get("", summary="Lister mes tags", response_model=Envelope[List[TagOut]])
def list_tags(
    q: Optional[str] = Query(None, description="Préfixe/sous-chaîne du nom"),
    limit: int = Query(100, ge=1, le=200),
    user_id: int = Depends(get_current_user_id),
    svc: TagService = Depends(get_tag_service),
):
    return ok(svc.list(user_id, q=q, limit=limit))


@router.patch("/{tag_id}", summary="Changer la couleur d'un tag", response_model=Envelope[TagOut])
def update(
    payload: TagUpdateIn,
    tag_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: TagService = Depends(get_tag_service),
):
    return ok(svc.update(tag_id, payload, user_id=user_id))
