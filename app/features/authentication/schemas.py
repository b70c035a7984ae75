import re

from pydantic import BaseModel, Field, field_validator

from app.features.users.schemas import UserOut

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

# ---------- Inputs ----------

class RegisterIn(BaseModel):
    email: str = Field(max_length=255, examples=["alice@example.com"])
    username: str = Field(min_length=3, max_length=30, examples=["alice"])
    password: str = Field(min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_RE.match(value):
            raise ValueError("Invalid email format")
        return value

    @field_validator("username")
    @classmethod
    def _check_username(cls, value: str) -> str:
        if not _USERNAME_RE.match(value):
            raise ValueError("Username can only contain letters, numbers, hyphens and underscores")
        return value

class LoginIn(BaseModel):
    email: str
    password: str = Field(min_length=1)

class RefreshIn(BaseModel):
    refresh_token: str = Field(min_length=1)

class LogoutIn(BaseModel):
    refresh_token: str = Field(min_length=1)


# ---------- Outputs ----------

class TokenPairOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # secondes (durée de l'access token)

class SessionOut(TokenPairOut):
    """Réponse de login / register : tokens + profil."""
    user: UserOut
