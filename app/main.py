"""
➡️ But : assembler toutes les pièces du puzzle.

Crée l'instance FastAPI (app).

Configure :

les logs structurés (structlog) et l'identifiant de requête (X-Request-ID)

CORS (autorisations de qui peut appeler ces API)

les handlers d'erreurs -> enveloppe {success, error, meta}

titre, version, tags, schéma OpenAPI personnalisé

Inclut les routers (ex : /api/tasks).

Initialise la base au démarrage (@app.on_event("startup")).

🔹 Avantages :

Centralise la configuration du serveur HTTP.

Point unique d'exécution : uvicorn app.main:app --reload.
"""

import time
import uuid

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import AppError, QueryTimeoutError
from app.core.logging import configure_logging
from app.core.openapi import custom_openapi
from app.core.responses import error_response, ok
from app.db.session import init_db

from app.api.routers import (
    authentication,
    users,
    themes,
    videos,
    memos,
    tags,
    tasks,
    reminders,
)

configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
log = structlog.get_logger("app")

app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    openapi_tags=[
        {"name": "auth", "description": "Opérations liées à l'authentification"},
        {"name": "users", "description": "Compte utilisateur"},
        {"name": "videos", "description": "Vidéos YouTube sauvegardées"},
        {"name": "memos", "description": "Mémos horodatés sur les vidéos"},
        {"name": "tags", "description": "Tags des mémos"},
        {"name": "themes", "description": "Regroupement des vidéos par thème"},
        {"name": "tasks", "description": "Tâches, transitions de statut et agrégats"},
        {"name": "reminders", "description": "Rappels planifiés (polling)"},
    ],
)

# CORS (ajustez selon vos besoins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS, allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# -----------------------------
# Request id + log d'accès
# -----------------------------
@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )
    started = time.perf_counter()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    log.info(
        "request_completed",
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return response

# -----------------------------
# Erreurs -> enveloppe
# -----------------------------
_HTTP_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        log.error("app_error", code=exc.code, message=exc.message)
    else:
        log.info("app_error", code=exc.code, status_code=exc.status_code)
    headers = None
    if isinstance(exc, QueryTimeoutError):
        headers = {"Retry-After": str(exc.details["retry_after"])}
    return error_response(exc.status_code, exc.code, exc.message, exc.details, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    code = _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    return error_response(exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR", "Validation failed", details
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log.exception("unhandled_error")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Internal server error"
    )

# -----------------------------
# Routers
# -----------------------------
app.include_router(authentication.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(themes.router, prefix="/api")
app.include_router(videos.router, prefix="/api")
app.include_router(memos.router, prefix="/api")
app.include_router(tags.router, prefix="/api")
app.include_router(tasks.router, prefix="/api")
app.include_router(reminders.router, prefix="/api")


@app.get("/health", tags=["health"], summary="Liveness")
def health():
    return ok({"status": "ok", "env": settings.ENV})


# Génération du schéma OpenAPI custom (facultatif, mais propre)
app.openapi = lambda: custom_openapi(app)

# Démarrage
@app.on_event("startup")
def on_startup():
    init_db()
    log.info("startup", env=settings.ENV, database=settings.DATABASE_URL.split("://")[0])

if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8080, reload=(settings.ENV == "dev")) # http://localhost:8080
