"""
➡️ But : paramètres de VideoMemo-Back, lus depuis l'environnement (ou `.env`) par pydantic-settings.

    from app.core.config import settings, jwt_settings

Les noms de variables sont ceux de l'environnement (case sensitive) : DATABASE_URL,
JWT_SECRET_KEY, UPCOMING_WINDOW_DAYS, ...

🔹 Avantages :

Un seul objet `settings` pour tout le process (API, scripts, tests).

Les tests surchargent simplement les variables d'env avant l'import.
"""

from datetime import timedelta
from typing import List, Optional

from pydantic_settings import BaseSettings

from app.security.tokens import JWTSettings


class Settings(BaseSettings):
    APP_NAME: str = "VideoMemo-Back"
    ENV: str = "dev"  # dev | prod | test
    CORS_ORIGINS: List[str] = ["*"]

    # ---------- Base de données ----------
    SQLITE_PATH: str = "videomemo.db"
    DATABASE_URL: Optional[str] = None    # prioritaire sur SQLITE_PATH (ex: postgresql+psycopg://...)
    DB_ECHO: bool = False

    # ---------- Auth ----------
    JWT_SECRET_KEY: str = "CHANGE_ME"     # ⚠️ obligatoire en prod
    JWT_ISSUER: str = "videomemo-api"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TTL_MINUTES: int = 15
    REFRESH_TTL_DAYS: int = 30

    # ---------- Tâches ----------
    UPCOMING_WINDOW_DAYS: int = 7         # défaut de /tasks/upcoming et /tasks/dashboard
    DASHBOARD_LIST_LIMIT: int = 5         # taille de la liste « recent » du dashboard
    QUERY_TIMEOUT_SECONDS: float = 5.0    # stats / dashboard

    # ---------- Rappels ----------
    REMINDER_BATCH_SIZE: int = 500        # rappels réclamés par passage du dispatcher
    REMINDER_POLL_SECONDS: float = 60.0   # intervalle de scripts/dispatch_reminders --loop

    # ---------- Logs ----------
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None       # None -> JSON en prod, console sinon

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    def model_post_init(self, __context):
        if not self.DATABASE_URL:
            object.__setattr__(self, "DATABASE_URL", f"sqlite:///{self.SQLITE_PATH}")
        if self.LOG_JSON is None:
            object.__setattr__(self, "LOG_JSON", self.ENV == "prod")
        if self.ENV == "prod" and self.JWT_SECRET_KEY == "CHANGE_ME":
            raise ValueError("JWT_SECRET_KEY must be set in prod")

    @property
    def upcoming_window(self) -> timedelta:
        return timedelta(days=self.UPCOMING_WINDOW_DAYS)


settings = Settings()

jwt_settings = JWTSettings(
    secret=settings.JWT_SECRET_KEY,
    issuer=settings.JWT_ISSUER,
    algorithm=settings.JWT_ALGORITHM,
    access_ttl=timedelta(minutes=settings.ACCESS_TTL_MINUTES),
    refresh_ttl=timedelta(days=settings.REFRESH_TTL_DAYS),
)
