from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.dependencies import get_current_user_id, get_reminder_service, pagination
from app.core.responses import Deleted, Envelope, Page, ok
from app.db.models.reminders import ReminderStatus
from app.features.reminders.schemas import ReminderCreateIn, ReminderUpdateIn, ReminderOut
from app.features.reminders.services import ReminderService

router = APIRouter(
    prefix="/reminders",
    tags=["reminders"],
    responses={404: {"description": "Not Found"}},
)


@router.get("", summary="Lister mes rappels", response_model=Envelope[Page[ReminderOut]])
def list_reminders(
    status_: Optional[ReminderStatus] = Query(None, alias="status"),
    task_id: Optional[int] = Query(None, ge=1),
    memo_id: Optional[int] = Query(None, ge=1),
    page=Depends(pagination),
    user_id: int = Depends(get_current_user_id),
    svc: ReminderService = Depends(get_reminder_service),
):
    return ok(svc.list(user_id, status=status_, task_id=task_id, memo_id=memo_id, **page))


@router.get(
    "/due",
    summary="Mes rappels dus (fire_at <= maintenant, non livrés)",
    response_model=Envelope[List[ReminderOut]],
)
def due(
    limit: int = Query(100, ge=1, le=500),
    user_id: int = Depends(get_current_user_id),
    svc: ReminderService = Depends(get_reminder_service),
):
    return ok(svc.due_reminders(user_id=user_id, limit=limit))


@router.get("/{reminder_id}", summary="Récupérer un rappel", response_model=Envelope[ReminderOut])
def get_one(
    reminder_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: ReminderService = Depends(get_reminder_service),
):
    return ok(svc.get(reminder_id, user_id))


@router.post(
    "",
    summary="Planifier un rappel sur une tâche ou un mémo",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[ReminderOut],
)
def create(
    payload: ReminderCreateIn,
    user_id: int = Depends(get_current_user_id),
    svc: ReminderService = Depends(get_reminder_service),
):
    return ok(svc.create(payload, user_id=user_id))


@router.put("/{reminder_id}", summary="Modifier un rappel en attente", response_model=Envelope[ReminderOut])
def update(
    payload: ReminderUpdateIn,
    reminder_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: ReminderService = Depends(get_reminder_service),
):
    return ok(svc.update(reminder_id, payload, user_id=user_id))


@router.post(
    "/{reminder_id}/dispatch",
    summary="Marquer un rappel comme livré",
    response_model=Envelope[ReminderOut],
    responses={409: {"description": "Already dispatched"}},
)
def dispatch(
    reminder_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: ReminderService = Depends(get_reminder_service),
):
    return ok(svc.mark_dispatched(reminder_id, user_id=user_id))


@router.delete("/{reminder_id}", summary="Supprimer un rappel", response_model=Envelope[Deleted])
def delete(
    reminder_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: ReminderService = Depends(get_reminder_service),
):
    svc.delete(reminder_id, user_id=user_id)
    return ok(Deleted(id=reminder_id))
