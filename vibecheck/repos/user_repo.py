"""Repository for user operations."""

from __future__ import annotations

from uuid import UUID

import asyncpg

from vibecheck.db import system_conn, user_conn
from vibecheck.models.user import User


def _row_to_user(row: asyncpg.Record) -> User:
    """Convert a database row to a User model."""
    return User(
        id=row["id"],
        email=row["email"],
        first_name=row["first_name"],
        language=row["language"] or "en",
        is_parent=bool(row["is_parent"]),
        parent_id=row["parent_id"],
        created_at=row["created_at"],
    )


class UserRepo:
    """All user-related database operations."""

    async def get(self, user_id: UUID) -> User | None:
        """
        Get a user by ID.

        Args:
            user_id: User UUID

        Returns:
            User if found, None otherwise
        """
        async with user_conn(user_id) as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", user_id)
            return _row_to_user(row) if row else None

    async def get_by_email(self, email: str) -> User | None:
        """
        Get a user by email address.
        Used to resolve a guardian's account. System conn because the lookup
        crosses users.

        Args:
            email: Normalized email address

        Returns:
            User if found, None otherwise
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM users WHERE email = $1",
                email,
            )
            return _row_to_user(row) if row else None

    async def create(
        self,
        email: str,
        first_name: str | None = None,
        language: str = "en",
        is_parent: bool = False,
    ) -> User:
        """
        Create a new user.

        Args:
            email: Email address for the new user
            first_name: Optional display name
            language: Preferred language for email copy
            is_parent: Whether the account may act as a guardian

        Returns:
            Newly created User
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO users (email, first_name, language, is_parent)
                VALUES ($1, $2, $3, $4)
                RETURNING *
                """,
                email.strip().lower(),
                first_name,
                language,
                is_parent,
            )
            return _row_to_user(row)
