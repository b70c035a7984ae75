from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field as PydField

# #RRGGBB
_HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ThemeCreateIn(BaseModel):
    name: str = PydField(..., min_length=1, max_length=255, examples=["Python"])
    description: Optional[str] = None
    color: Optional[str] = PydField(None, pattern=_HEX_COLOR, examples=["#3366FF"])


class ThemeUpdateIn(BaseModel):
    """PUT partiel : seuls les champs envoyés sont modifiés."""
    name: Optional[str] = PydField(None, min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = PydField(None, pattern=_HEX_COLOR)


class ThemeOut(BaseModel):
    model_config = {"from_attributes": True}

    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime
    updated_at: datetime
