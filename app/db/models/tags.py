from typing import Optional
from sqlmodel import Field
from sqlalchemy import UniqueConstraint

from .base import OwnedModelDB


class Tag(OwnedModelDB, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tag_user_name"),
        {"sqlite_autoincrement": True},
    )

    name: str = Field(index=True)
    color: Optional[str] = Field(default=None)
