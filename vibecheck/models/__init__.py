"""
Pydantic models for Vibe Check.

All data shapes defined here. No imports from db, repos, or routes.
"""

from vibecheck.models.guardian import (
    GuardianLink,
    GuardianStatus,
    GuardianStatusResponse,
    StartGuardianRequest,
    StartGuardianResponse,
    VerifyGuardianRequest,
    VerifyGuardianResponse,
)
from vibecheck.models.user import User

__all__ = [
    # User models
    "User",
    # Guardian models
    "GuardianLink",
    "GuardianStatus",
    "GuardianStatusResponse",
    "StartGuardianRequest",
    "StartGuardianResponse",
    "VerifyGuardianRequest",
    "VerifyGuardianResponse",
]
