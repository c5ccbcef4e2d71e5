from typing import Optional
from datetime import datetime
from pydantic import BaseModel, field_validator

from ..models.user import UserRole


class MessageCreate(BaseModel):
    # Role marker the sender claims; must match the authenticated actor.
    role: UserRole
    text: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        if isinstance(v, str):
            return UserRole(v.strip().lower())
        return v

    @field_validator("text", "image_url", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Whitespace-only fields count as absent."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.image_url


class MessageResponse(BaseModel):
    id: int
    thread_id: str
    sender_role: UserRole
    text: str | None = None
    image_url: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
