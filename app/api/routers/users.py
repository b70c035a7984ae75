from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_user_id, get_user_service
from app.core.responses import Envelope, ok
from app.features.users.schemas import AccountDeletedOut
from app.features.users.services import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={401: {"description": "Unauthenticated"}},
)


@router.delete(
    "/me",
    summary="Supprimer mon compte et toutes mes données",
    response_model=Envelope[AccountDeletedOut],
)
def delete_me(
    user_id: int = Depends(get_current_user_id),
    svc: UserService = Depends(get_user_service),
):
    deleted = svc.delete_account(user_id)
    return ok(AccountDeletedOut(user_id=user_id, deleted=deleted))
