from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.dependencies import get_current_user_id, get_video_service, pagination
from app.core.responses import Deleted, Envelope, Page, ok
from app.features.videos.schemas import VideoSaveIn, VideoUpdateIn, VideoOut
from app.features.videos.services import VideoService

router = APIRouter(
    prefix="/videos",
    tags=["videos"],
    responses={404: {"description": "Not Found"}},
)


@router.get("", summary="Lister mes vidéos", response_model=Envelope[Page[VideoOut]])
def list_videos(
    q: Optional[str] = Query(None, description="Recherche dans le titre"),
    theme_id: Optional[int] = Query(None, ge=1),
    page=Depends(pagination),
    user_id: int = Depends(get_current_user_id),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.list(user_id, q=q, theme_id=theme_id, **page))


@router.get("/{video_id}", summary="Récupérer une vidéo", response_model=Envelope[VideoOut])
def get_one(
    video_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.get(video_id, user_id))


@router.post(
    "",
    summary="Sauvegarder une vidéo YouTube",
    description="Idempotent : une vidéo déjà sauvegardée est renvoyée telle quelle (titre/thème mis à jour si fournis).",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[VideoOut],
)
def save(
    payload: VideoSaveIn,
    user_id: int = Depends(get_current_user_id),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.save(payload, user_id=user_id))


@router.put("/{video_id}", summary="Mettre à jour une vidéo", response_model=Envelope[VideoOut])
def update(
    payload: VideoUpdateIn,
    video_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.update(video_id, payload, user_id=user_id))


@router.post("/{video_id}/watch", summary="Marquer la vidéo comme vue", response_model=Envelope[VideoOut])
def watch(
    video_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: VideoService = Depends(get_video_service),
):
    return ok(svc.mark_watched(video_id, user_id=user_id))


@router.delete(
    "/{video_id}",
    summary="Supprimer une vidéo et ses mémos",
    response_model=Envelope[Deleted],
)
def delete(
    video_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: VideoService = Depends(get_video_service),
):
    svc.delete(video_id, user_id=user_id)
    return ok(Deleted(id=video_id))
