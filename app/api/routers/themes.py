from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.dependencies import get_current_user_id, get_theme_service
from app.core.responses import Deleted, Envelope, ok
from app.features.themes.schemas import ThemeCreateIn, ThemeUpdateIn, ThemeOut
from app.features.themes.services import ThemeService

router = APIRouter(
    prefix="/themes",
    tags=["themes"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# List mine
# -----------------------------
@router.get("", summary="Lister mes thèmes", response_model=Envelope[List[ThemeOut]])
def list_mine(
    offset: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=200),
    q: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    svc: ThemeService = Depends(get_theme_service),
):
    return ok(svc.list_mine(user_id, offset=offset, limit=limit, q=q))


@router.get("/{theme_id}", summary="Récupérer un thème", response_model=Envelope[ThemeOut])
def get_one(
    theme_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: ThemeService = Depends(get_theme_service),
):
    return ok(svc.get(theme_id, user_id))

# -----------------------------
# Create / Update / Delete
# -----------------------------
@router.post(
    "",
    summary="Créer un thème",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[ThemeOut],
)
def create(
    payload: ThemeCreateIn,
    user_id: int = Depends(get_current_user_id),
    svc: ThemeService = Depends(get_theme_service),
):
    return ok(svc.create(payload, user_id=user_id))


@router.put("/{theme_id}", summary="Mettre à jour un thème", response_model=Envelope[ThemeOut])
def update(
    payload: ThemeUpdateIn,
    theme_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: ThemeService = Depends(get_theme_service),
):
    return ok(svc.update(theme_id, payload, user_id=user_id))


@router.delete(
    "/{theme_id}",
    summary="Supprimer un thème (ses vidéos sont conservées)",
    response_model=Envelope[Deleted],
)
def delete(
    theme_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: ThemeService = Depends(get_theme_service),
):
    svc.delete(theme_id, user_id=user_id)
    return ok(Deleted(id=theme_id))
