"""
Authentication for Vibe Check.

Callers present a bearer JWT issued by the auth provider. The token's
subject is the user's UUID; the user must exist in the users table.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Header

from vibecheck import config
from vibecheck.errors import DependencyFailure, Unauthorized
from vibecheck.models.user import User
from vibecheck.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)

user_repo = UserRepo()


def create_jwt(user_id: UUID, expires_in: timedelta = timedelta(hours=1)) -> str:
    """
    Create a signed access token for a user.

    Args:
        user_id: User UUID to encode in the token
        expires_in: Token lifetime

    Returns:
        Signed JWT string
    """
    now = datetime.now(UTC)
    payload = {
        "sub": str(user_id),
        "exp": now + expires_in,
        "iat": now,
    }
    return jwt.encode(payload, config.settings.JWT_SECRET, algorithm=config.settings.JWT_ALGORITHM)


def decode_jwt(token: str) -> dict:
    """
    Decode and verify a JWT.

    Args:
        token: JWT string to decode

    Returns:
        Decoded payload

    Raises:
        Unauthorized: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            config.settings.JWT_SECRET,
            algorithms=[config.settings.JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError as e:
        raise Unauthorized() from e
    except jwt.InvalidTokenError as e:
        raise Unauthorized() from e


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Args:
        authorization: "Bearer <jwt>" header

    Returns:
        Current authenticated User

    Raises:
        Unauthorized: Missing or invalid token, or unknown user
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized()

    payload = decode_jwt(authorization.removeprefix("Bearer ").strip())

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as e:
        raise Unauthorized() from e

    try:
        user = await user_repo.get(user_id)
    except Exception as e:
        logger.exception("User lookup failed during authentication")
        raise DependencyFailure() from e

    if not user:
        raise Unauthorized()

    return user
