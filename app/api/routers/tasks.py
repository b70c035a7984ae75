from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.dependencies import (
    get_current_user_id,
    get_memo_task_linker,
    get_task_query_service,
    get_task_service,
    pagination,
)
from app.core.responses import Deleted, Envelope, Page, ok
from app.db.models.tasks import TaskStatus, TaskPriority
from app.db.repositories.tasks import TaskFilters
from app.features.tasks.linker import MemoTaskLinker
from app.features.tasks.queries import MAX_WINDOW_DAYS, TaskQueryService
from app.features.tasks.schemas import (
    DashboardOut,
    TaskCreateIn,
    TaskDetailOut,
    TaskFromMemoIn,
    TaskOut,
    TaskStatsOut,
    TaskUpdateIn,
)
from app.features.tasks.services import TaskService
from app.utils.clock import to_naive_utc

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    responses={404: {"description": "Not Found"}, 409: {"description": "Conflict"}},
)


def _window(days: Optional[float]) -> Optional[timedelta]:
    return None if days is None else timedelta(days=days)


def window_days(description: str):
    # nan / inf et les valeurs énormes feraient déborder timedelta
    return Query(None, le=MAX_WINDOW_DAYS, allow_inf_nan=False, description=description)

# -----------------------------
# Listes et agrégats (routes statiques avant /{task_id})
# -----------------------------
@router.get("", summary="Lister mes tâches (filtres combinables)", response_model=Envelope[Page[TaskOut]])
def list_tasks(
    status_: Optional[TaskStatus] = Query(None, alias="status"),
    priority: Optional[TaskPriority] = Query(None),
    tag: Optional[str] = Query(None, description="Tag du mémo source"),
    due_from: Optional[datetime] = Query(None, description="due_date >= due_from"),
    due_to: Optional[datetime] = Query(None, description="due_date < due_to"),
    memo_id: Optional[int] = Query(None, ge=1),
    video_id: Optional[int] = Query(None, ge=1),
    q: Optional[str] = Query(None),
    page=Depends(pagination),
    user_id: int = Depends(get_current_user_id),
    svc: TaskQueryService = Depends(get_task_query_service),
):
    filters = TaskFilters(
        status=status_,
        priority=priority,
        tag=tag,
        due_from=to_naive_utc(due_from),
        due_to=to_naive_utc(due_to),
        memo_id=memo_id,
        video_id=video_id,
        q=q,
    )
    return ok(svc.list(user_id, filters, **page))


@router.get("/stats", summary="Compteurs par statut / priorité", response_model=Envelope[TaskStatsOut])
def stats(
    user_id: int = Depends(get_current_user_id),
    svc: TaskQueryService = Depends(get_task_query_service),
):
    return ok(svc.stats(user_id))


@router.get("/overdue", summary="Tâches en retard", response_model=Envelope[List[TaskOut]])
def overdue(
    user_id: int = Depends(get_current_user_id),
    svc: TaskQueryService = Depends(get_task_query_service),
):
    return ok(svc.overdue(user_id))


@router.get("/upcoming", summary="Tâches à échéance proche", response_model=Envelope[List[TaskOut]])
def upcoming(
    days: Optional[float] = window_days("Fenêtre en jours (défaut : UPCOMING_WINDOW_DAYS)"),
    user_id: int = Depends(get_current_user_id),
    svc: TaskQueryService = Depends(get_task_query_service),
):
    return ok(svc.upcoming(user_id, window=_window(days)))


@router.get("/dashboard", summary="Vue synthétique (un seul instantané)", response_model=Envelope[DashboardOut])
def dashboard(
    days: Optional[float] = window_days("Fenêtre « à venir » en jours"),
    user_id: int = Depends(get_current_user_id),
    svc: TaskQueryService = Depends(get_task_query_service),
):
    return ok(svc.dashboard(user_id, window=_window(days)))


@router.get("/search", summary="Recherche texte (titre, description)", response_model=Envelope[Page[TaskOut]])
def search(
    q: str = Query(..., description="Sous-chaîne, insensible à la casse"),
    page=Depends(pagination),
    user_id: int = Depends(get_current_user_id),
    svc: TaskQueryService = Depends(get_task_query_service),
):
    return ok(svc.search(user_id, q, **page))

# -----------------------------
# Création
# -----------------------------
@router.post(
    "",
    summary="Créer une tâche",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[TaskOut],
)
def create(
    payload: TaskCreateIn,
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    return ok(svc.create(payload, user_id=user_id))


@router.post(
    "/from-memo/{memo_id}",
    summary="Créer une tâche à partir d'un mémo",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[TaskOut],
)
def create_from_memo(
    payload: Optional[TaskFromMemoIn] = None,
    memo_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    linker: MemoTaskLinker = Depends(get_memo_task_linker),
):
    return ok(linker.create_from_memo(memo_id, payload or TaskFromMemoIn(), user_id=user_id))

# -----------------------------
# Une tâche
# -----------------------------
@router.get(
    "/{task_id}",
    summary="Récupérer une tâche (avec mémo source et vidéo)",
    response_model=Envelope[TaskDetailOut],
)
def get_one(
    task_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    return ok(svc.get_details(task_id, user_id))


@router.put("/{task_id}", summary="Mettre à jour une tâche", response_model=Envelope[TaskOut])
def update(
    payload: TaskUpdateIn,
    task_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    return ok(svc.update(task_id, payload, user_id=user_id))


@router.post("/{task_id}/complete", summary="Marquer comme terminée", response_model=Envelope[TaskOut])
def complete(
    task_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    return ok(svc.complete(task_id, user_id=user_id))


@router.post("/{task_id}/reopen", summary="Rouvrir une tâche terminée", response_model=Envelope[TaskOut])
def reopen(
    task_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    return ok(svc.reopen(task_id, user_id=user_id))


@router.delete("/{task_id}", summary="Supprimer une tâche et ses rappels", response_model=Envelope[Deleted])
def delete(
    task_id: int = Path(..., ge=1),
    user_id: int = Depends(get_current_user_id),
    svc: TaskService = Depends(get_task_service),
):
    svc.delete(task_id, user_id=user_id)
    return ok(Deleted(id=task_id))
