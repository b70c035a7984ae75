"""
➡️ But : Enveloppe commune de toutes les réponses de l'API.

    {"success": bool, "data"?: T, "error"?: {code, message, details?},
     "meta": {"timestamp", "request_id"}}

Les routes renvoient `ok(data)` et déclarent `response_model=Envelope[MonSchemaOut]`.
Les erreurs sont construites par `error_response(...)` dans les handlers d'exception.
"""

from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar

import structlog
from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class Meta(BaseModel):
    timestamp: datetime
    request_id: Optional[str] = None


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[ErrorBody] = None
    meta: Optional[Meta] = None


class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int


def _meta() -> dict:
    ctx = structlog.contextvars.get_contextvars()
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": ctx.get("request_id"),
    }


def ok(data: Any = None) -> dict:
    """Enveloppe de succès (sérialisée ensuite via le response_model)."""
    return {"success": True, "data": data, "meta": _meta()}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    error = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "meta": _meta()},
        headers=headers,
    )


class Deleted(BaseModel):
    id: int
    deleted: bool = True
