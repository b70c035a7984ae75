from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.dependencies import get_current_user_id, get_memo_service, pagination
from app.core.responses import Deleted, Envelope, Page, ok
from app.features.memos.schemas import MemoCreateIn, MemoUpdateIn, MemoOut
from app.features.memos.services import MemoService

router = APIRouter(
    prefix="/memos",
    tags=["memos"],
    responses={404: {"description": "Not Found"}},
)


@router.get("", summary="Lister mes mémos", response_model=Envelope[Page[MemoOut]])
def list_memos(
    video_id: Optional[int] = Query(None, ge=1),
    tag: Optional[str] = Query(None, description="Nom exact du tag"),
    q: Optional[str] = Query(None, description="Recherche dans le contenu"),
    important: Optional[bool] = Query(None),
    page=Depends(pagination),
    user_id: int = Depends(get_current_user_id),
    svc: MemoService = Depends(get_memo_service),
):
    return ok(svc.list(user_id, video_id=video_id, tag=tag, q=q, important=important, **page))


@router.get("/{memo_id}", summary="Récupérer un mémo", response_model=Envelope[MemoOut])
def get_one(
    memo_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: MemoService = Depends(get_memo_service),
):
    return ok(svc.get(memo_id, user_id))


@router.post(
    "",
    summary="Créer un mémo sur une vidéo",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[MemoOut],
)
def create(
    payload: MemoCreateIn,
    user_id: int = Depends(get_current_user_id),
    svc: MemoService = Depends(get_memo_service),
):
    return ok(svc.create(payload, user_id=user_id))


@router.put("/{memo_id}", summary="Mettre à jour un mémo", response_model=Envelope[MemoOut])
def update(
    payload: MemoUpdateIn,
    memo_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: MemoService = Depends(get_memo_service),
):
    return ok(svc.update(memo_id, payload, user_id=user_id))


@router.delete(
    "/{memo_id}",
    summary="Supprimer un mémo (les tâches dérivées sont conservées)",
    response_model=Envelope[Deleted],
)
def delete(
    memo_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: MemoService = Depends(get_memo_service),
):
    svc.delete(memo_id, user_id=user_id)
    return ok(Deleted(id=memo_id))
