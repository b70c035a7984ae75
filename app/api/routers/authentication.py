from fastapi import APIRouter, Depends, status

from app.api.dependencies import (
    get_auth_service,
    get_access_token_from_bearer,
    get_client_ip_and_ua,
    ClientContext,
)
from app.core.responses import Envelope, ok
from app.features.authentication.services import AuthService
from app.features.authentication.schemas import (
    RegisterIn,
    LoginIn,
    RefreshIn,
    LogoutIn,
    SessionOut,
    TokenPairOut,
)
from app.features.users.schemas import UserOut

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    responses={401: {"description": "Unauthenticated"}},
)

# -----------------------------
# Register
# -----------------------------
@router.post(
    "/register",
    summary="Créer un compte",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[SessionOut],
)
def register(
    payload: RegisterIn,
    svc: AuthService = Depends(get_auth_service),
    client_ctx: ClientContext = Depends(get_client_ip_and_ua),
):
    return ok(svc.register(payload, ip=client_ctx.ip, user_agent=client_ctx.user_agent))

# -----------------------------
# Login
# -----------------------------
@router.post(
    "/login",
    summary="Se connecter",
    description="Retourne un couple access/refresh et le profil.",
    response_model=Envelope[SessionOut],
)
def login(
    payload: LoginIn,
    svc: AuthService = Depends(get_auth_service),
    client_ctx: ClientContext = Depends(get_client_ip_and_ua),
):
    return ok(svc.login(payload, ip=client_ctx.ip, user_agent=client_ctx.user_agent))

# -----------------------------
# Refresh (rotation)
# -----------------------------
@router.post(
    "/refresh",
    summary="Renouveler les tokens (rotation)",
    description="L'ancien refresh est révoqué ; le présenter à nouveau révoque toute la session.",
    response_model=Envelope[TokenPairOut],
)
def refresh(
    payload: RefreshIn,
    svc: AuthService = Depends(get_auth_service),
    client_ctx: ClientContext = Depends(get_client_ip_and_ua),
):
    return ok(svc.refresh(payload, ip=client_ctx.ip, user_agent=client_ctx.user_agent))

# -----------------------------
# Logout
# -----------------------------
@router.post(
    "/logout",
    summary="Se déconnecter (révocation du refresh)",
    response_model=Envelope[dict],
)
def logout(payload: LogoutIn, svc: AuthService = Depends(get_auth_service)):
    svc.log_out(payload)
    return ok({"logged_out": True})

# -----------------------------
# Me (profil courant)
# -----------------------------
@router.get(
    "/me",
    summary="Récupérer l'utilisateur courant",
    response_model=Envelope[UserOut],
)
def me(
    access_token: str = Depends(get_access_token_from_bearer),
    svc: AuthService = Depends(get_auth_service),
):
    return ok(svc.get_current_user(access_token=access_token))
