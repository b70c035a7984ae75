from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class TagUpdateIn(BaseModel):
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$", examples=["#3366FF"])


class TagOut(BaseModel):
    id: int
    name: str
    color: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}
