from sqlmodel import Field

from .base import BaseModelDB


class User(BaseModelDB, table=True):
    """Compte VideoMemo. email et username sont fixés à l'inscription."""

    __table_args__ = {"sqlite_autoincrement": True}

    email: str = Field(index=True, unique=True, max_length=255)
    username: str = Field(index=True, unique=True, max_length=50)
    hashed_password: str  # bcrypt, jamais exposé (cf. UserOut)
