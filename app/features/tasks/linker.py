"""
➡️ But : Dériver une tâche d'un mémo (Memo ↔ Task Linker).

La tâche créée garde memo_id (et la vidéo du mémo) comme provenance.
Le lien n'est pas une FK : si le mémo est supprimé plus tard, la tâche reste
et son memo_id devient une référence pendante, attendue.
"""

import structlog

from app.core.errors import MemoNotFoundError
from app.db.models.tasks import Task
from app.db.repositories.memos import MemoRepository
from app.features.tasks.schemas import TaskCreateIn, TaskFromMemoIn
from app.features.tasks.services import TaskService

log = structlog.get_logger(__name__)

TITLE_FROM_CONTENT_MAX = 100


def default_title(content: str) -> str:
    first_line = (content or "").strip().splitlines()[0] if (content or "").strip() else ""
    title = first_line[:TITLE_FROM_CONTENT_MAX].strip()
    return title or "Memo follow-up"


class MemoTaskLinker:
    def __init__(self, memo_repo: MemoRepository, tasks: TaskService):
        self.memo_repo = memo_repo
        self.tasks = tasks

    def create_from_memo(self, memo_id: int, payload: TaskFromMemoIn, *, user_id: int) -> Task:
        memo = self.memo_repo.get(memo_id)
        # mémo absent ou d'un autre utilisateur : même réponse, pas de fuite d'existence
        if memo is None or memo.user_id != user_id:
            if memo is not None:
                log.warning("ownership_violation", resource="memo", resource_id=memo_id, user_id=user_id)
            raise MemoNotFoundError()

        task = self.tasks.create(
            TaskCreateIn(
                title=payload.title or default_title(memo.content),
                description=payload.description if payload.description is not None else memo.content,
                priority=payload.priority,
                due_date=payload.due_date,
                video_id=memo.video_id,
            ),
            user_id=user_id,
            memo_id=memo.id,
        )
        log.info("task_linked_to_memo", task_id=task.id, memo_id=memo.id, user_id=user_id)
        return task
