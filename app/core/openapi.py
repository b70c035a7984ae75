"""
➡️ But : compléter le schéma OpenAPI généré par FastAPI (Swagger sur /docs).

- description des conventions communes (enveloppe, dates, pagination, codes d'erreur)
- codes d'erreur métier listés depuis app.core.errors (toujours à jour)
- schéma d'authentification Bearer appliqué par défaut
"""

from fastapi.openapi.utils import get_openapi

from app.core import errors

_CONVENTIONS = """\
API VideoMemo : vidéos YouTube, mémos horodatés, tâches et rappels.

### Conventions
- Heures en UTC, ISO 8601 (un datetime sans fuseau est interprété comme UTC).
- Réponses enveloppées : `{success, data?, error?, meta: {timestamp, request_id}}`.
- Pagination : `offset` & `limit`, listes renvoyées sous la forme `{items, total}`.
- `X-Request-ID` : repris de la requête ou généré, renvoyé dans l'en-tête et `meta.request_id`.

### Codes d'erreur
"""


def _error_codes() -> str:
    rows = sorted(
        {
            (cls.code, cls.status_code)
            for cls in vars(errors).values()
            if isinstance(cls, type) and issubclass(cls, errors.AppError)
        },
        key=lambda row: (row[1], row[0]),
    )
    return "\n".join(f"- `{code}` ({status_code})" for code, status_code in rows)


def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=_CONVENTIONS + _error_codes(),
        routes=app.routes,
        tags=app.openapi_tags,
    )
    schema.setdefault("components", {}).setdefault("securitySchemes", {})["bearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    schema["security"] = [{"bearerAuth": []}]
    app.openapi_schema = schema
    return app.openapi_schema
