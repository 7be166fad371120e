"""Guardian link models for the parent/child verification flow."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

GuardianStatus = Literal["pending", "verified", "expired"]

EMAIL_MAX_LENGTH = 255
CHILD_NAME_MAX_LENGTH = 100
CODE_PATTERN = re.compile(r"[0-9]{6}")


def normalize_email(value: Any) -> Any:
    """Trim and lower-case an email before validation, lookup and storage."""
    if not isinstance(value, str):
        return value
    value = value.strip().lower()
    if len(value) > EMAIL_MAX_LENGTH:
        raise ValueError("Email too long")
    return value


def mask_email(email: str) -> str:
    """Mask the local part of an address: guardian@example.com -> g*******@example.com."""
    local, sep, domain = email.partition("@")
    if not sep or not local:
        return "***"
    return f"{local[0]}{'*' * (len(local) - 1)}@{domain}"


class GuardianLink(BaseModel):
    """Core guardian link model. Maps 1:1 to the guardian_links table."""

    id: UUID
    child_id: UUID
    guardian_email: str
    method: str = "email_code"
    status: GuardianStatus
    code_hash: str | None = None
    code_expires_at: datetime | None = None
    last_sent_at: datetime | None = None
    attempts: int = 0
    verified_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StartGuardianRequest(_CamelModel):
    """Request body for POST /guardian-start."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    guardian_email: EmailStr
    child_name: str | None = Field(default=None, max_length=CHILD_NAME_MAX_LENGTH)

    @field_validator("guardian_email", mode="before")
    @classmethod
    def _normalize_guardian_email(cls, value: Any) -> Any:
        return normalize_email(value)

    @field_validator("child_name", mode="before")
    @classmethod
    def _strip_child_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip() or None
        return value


class StartGuardianResponse(_CamelModel):
    """Returned after a code has been issued. Never contains the code."""

    success: bool = True
    message: str = "Verification code sent to guardian email"
    expires_in: int


class VerifyGuardianRequest(_CamelModel):
    """Request body for POST /guardian-verify."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    guardian_email: EmailStr
    code: str

    @field_validator("guardian_email", mode="before")
    @classmethod
    def _normalize_guardian_email(cls, value: Any) -> Any:
        return normalize_email(value)

    @field_validator("code")
    @classmethod
    def _six_digits(cls, value: str) -> str:
        if not CODE_PATTERN.fullmatch(value):
            raise ValueError("Code must be exactly 6 digits")
        return value


class VerifyGuardianResponse(_CamelModel):
    success: bool = True
    message: str = "Guardian verified successfully"
    verified: bool = True


class GuardianStatusResponse(_CamelModel):
    """What GET /guardian-status returns. The guardian email is masked."""

    id: UUID | None = None
    status: GuardianStatus | None = None
    method: str | None = None
    guardian_email_masked: str | None = None
    verified_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_link(cls, link: GuardianLink | None) -> GuardianStatusResponse:
        """Convert an internal GuardianLink to the public status response."""
        if link is None:
            return cls(status=None)
        return cls(
            id=link.id,
            status=link.status,
            method=link.method,
            guardian_email_masked=mask_email(link.guardian_email),
            verified_at=link.verified_at,
            created_at=link.created_at,
            updated_at=link.updated_at,
        )
