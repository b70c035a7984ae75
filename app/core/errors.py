"""
➡️ But : Taxonomie des erreurs métier de l'API.

Les services lèvent ces exceptions (jamais de HTTPException dans la logique métier).
Les handlers enregistrés dans app.main les convertissent en enveloppe JSON :

    {"success": false, "error": {"code", "message", "details?"}, "meta": {...}}

🔹 Avantages :

Un seul endroit pour le mapping code métier -> statut HTTP.

Aucune trace interne (stack, SQL) ne fuit vers le client.
"""

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    code: str = "INTERNAL_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


# -----------------------------
# 4xx : validation
# -----------------------------
class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Validation failed"


class InvalidAssociationError(ValidationError):
    """Un rappel doit viser exactement une tâche OU un mémo."""
    code = "INVALID_ASSOCIATION"
    default_message = "Exactly one of task_id or memo_id must be set"


# -----------------------------
# 401 : authentification
# -----------------------------
class UnauthenticatedError(AppError):
    code = "UNAUTHENTICATED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class InvalidCredentialsError(AppError):
    code = "INVALID_CREDENTIALS"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid email or password"


class InvalidOrExpiredTokenError(AppError):
    code = "INVALID_OR_EXPIRED_TOKEN"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Refresh token is invalid or expired"


class InvalidTokenError(AppError):
    code = "INVALID_TOKEN"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


# -----------------------------
# 403 / 404
# -----------------------------
class ForbiddenError(AppError):
    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class MemoNotFoundError(NotFoundError):
    code = "MEMO_NOT_FOUND"
    default_message = "Memo not found"


# -----------------------------
# 409 : conflits
# -----------------------------
class DuplicateResourceError(AppError):
    code = "DUPLICATE_RESOURCE"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class ConflictError(AppError):
    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Concurrent modification, please retry"


class AlreadyCompletedError(ConflictError):
    code = "ALREADY_COMPLETED"
    default_message = "Task is already completed"


class NotCompletedError(ConflictError):
    code = "NOT_COMPLETED"
    default_message = "Task is not completed"


class InvalidTransitionError(ConflictError):
    code = "INVALID_TRANSITION"
    default_message = "Invalid status transition"

    def __init__(self, from_status: str, to_status: str):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid status transition: {from_status} -> {to_status}",
            details={"from": from_status, "to": to_status},
        )


class AlreadyDispatchedError(ConflictError):
    code = "ALREADY_DISPATCHED"
    default_message = "Reminder already dispatched"


# -----------------------------
# 504 : timeout
# -----------------------------
class QueryTimeoutError(AppError):
    code = "TIMEOUT"
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "The query took too long, please retry later"

    def __init__(self, message: Optional[str] = None, *, retry_after: int = 5):
        super().__init__(message, details={"retry_after": retry_after})
