"""
➡️ But : Configurer la base (SQLite par défaut) et gérer les sessions de base de données.

engine : connexion à la base (sqlite:///app.db ou DATABASE_URL).

init_db() : crée les tables à partir des modèles SQLModel.

get_session() : dépendance FastAPI qui ouvre une session, la fournit aux routes, puis la ferme proprement.

statement_timeout() : borne la durée des requêtes d'agrégation (stats / dashboard).

🔹 Avantages :

Un seul endroit pour gérer les connexions DB.

Réutilisable par injection (Depends(get_session)).
"""

import time
from contextlib import contextmanager
from typing import Dict, Any, Iterator

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, create_engine, Session

# Import all models for creating all tables
from app.db.models.users import User
from app.db.models.refresh_tokens import RefreshToken
from app.db.models.themes import Theme
from app.db.models.videos import Video
from app.db.models.tags import Tag
from app.db.models.memos import Memo, MemoTag
from app.db.models.tasks import Task
from app.db.models.reminders import Reminder

from app.core.config import settings
from app.core.errors import QueryTimeoutError

def build_engine(url: str, *, echo: bool = False, **kwargs) -> Engine:
    assert url, "DATABASE_URL must be set"

    is_sqlite = url.startswith("sqlite:")

    connect_args: Dict[str, Any] = {}
    if is_sqlite:
        # Requis pour SQLite quand utilisé dans un app serveur (multi-threads)
        connect_args["check_same_thread"] = False

    return create_engine(
        url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,  # ping utile pour Postgres/MySQL ; inutile pour SQLite
        **kwargs,
    )

engine: Engine = build_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

def init_db(bind: Engine = engine) -> None:
    """
    Crée les tables si elles n'existent pas (usage dev/demo).
    En prod avec Alembic, préfère des migrations.
    """
    SQLModel.metadata.create_all(bind)


def get_session():
    """
    Dépendance FastAPI : fournit une session par requête.
    Utilisation :
        def route(..., session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session


def _is_timeout(exc: OperationalError) -> bool:
    msg = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    return "interrupted" in msg or "statement timeout" in msg or "canceling statement" in msg


@contextmanager
def statement_timeout(session: Session, seconds: float) -> Iterator[None]:
    """
    Borne la durée des requêtes exécutées dans le bloc.

    - PostgreSQL : SET LOCAL statement_timeout (portée = transaction courante)
    - SQLite : progress handler qui interrompt la requête une fois l'échéance passée

    Lève QueryTimeoutError si la base a interrompu une requête.
    """
    conn = session.connection()
    dialect = conn.dialect.name
    raw = None

    if dialect == "postgresql":
        conn.execute(text(f"SET LOCAL statement_timeout = {int(seconds * 1000)}"))
    elif dialect == "sqlite":
        deadline = time.monotonic() + seconds
        raw = conn.connection.dbapi_connection
        # valeur non nulle retournée => sqlite interrompt la requête en cours
        raw.set_progress_handler(lambda: int(time.monotonic() > deadline), 1000)

    try:
        yield
    except OperationalError as exc:
        if _is_timeout(exc):
            session.rollback()
            raise QueryTimeoutError(retry_after=max(1, int(seconds))) from exc
        raise
    finally:
        if raw is not None:
            raw.set_progress_handler(None, 0)
