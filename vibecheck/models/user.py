"""User account models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr


class User(BaseModel):
    """Core user model. Represents a row in the users table."""

    id: UUID
    email: EmailStr
    first_name: str | None = None
    language: str = "en"
    is_parent: bool = False
    parent_id: UUID | None = None
    created_at: datetime

    @property
    def is_guardian_capable(self) -> bool:
        """Whether this account may be linked as someone's parent/guardian."""
        return self.is_parent
