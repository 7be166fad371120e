"""Guardian verification routes."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import pydantic
from fastapi import APIRouter, Depends, Request

from vibecheck.auth import get_current_user
from vibecheck.errors import GuardianError, ValidationError
from vibecheck.models.guardian import (
    GuardianStatusResponse,
    StartGuardianRequest,
    StartGuardianResponse,
    VerifyGuardianRequest,
    VerifyGuardianResponse,
)
from vibecheck.models.user import User
from vibecheck.services.guardian_service import GuardianService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["guardian"])

guardian_service = GuardianService()

ModelT = TypeVar("ModelT", bound=pydantic.BaseModel)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise ValidationError(details="body: Invalid JSON payload") from exc


def _parse(model: type[ModelT], payload: Any) -> ModelT:
    """Validate a request body, raising ValidationError with readable details."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        details = ", ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(details=details) from exc


@router.post("/guardian-start", status_code=200)
async def guardian_start(
    request: Request,
    user: User = Depends(get_current_user),
) -> StartGuardianResponse:
    """
    Send a 6-digit verification code to the guardian's email.

    Rate limits:
    - 5 codes per child/guardian pair per 24 hours
    - 60 seconds between sends
    """
    req = _parse(StartGuardianRequest, await _read_json(request))
    logger.info("Starting guardian verification for child %s, guardian %s", user.id, req.guardian_email)
    return await guardian_service.start(user, req)


@router.post("/guardian-verify", status_code=200)
async def guardian_verify(
    request: Request,
    user: User = Depends(get_current_user),
) -> VerifyGuardianResponse:
    """
    Verify a guardian code and link the child to the guardian's account.

    Every failure response carries verified=false.
    """
    try:
        req = _parse(VerifyGuardianRequest, await _read_json(request))
        logger.info("Verifying guardian code for child %s, guardian %s", user.id, req.guardian_email)
        return await guardian_service.verify(user, req)
    except GuardianError as exc:
        exc.extra["verified"] = False
        raise


@router.get("/guardian-status", status_code=200, response_model_exclude_unset=True)
async def guardian_status(
    user: User = Depends(get_current_user),
) -> GuardianStatusResponse:
    """Latest guardian link for the current user, with the email masked."""
    return await guardian_service.status(user)
