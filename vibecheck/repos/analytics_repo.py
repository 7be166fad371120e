"""Repository for analytics events."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from vibecheck.db import system_conn


class AnalyticsRepo:
    """Append-only analytics event sink."""

    async def record_event(
        self,
        user_id: UUID,
        event_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """
        Insert one analytics event.

        Args:
            user_id: User the event belongs to
            event_type: Event name, e.g. "guardian_code_sent"
            metadata: Extra JSON properties
        """
        async with system_conn() as conn:
            await conn.execute(
                """
                INSERT INTO analytics_events (user_id, event_type, event_metadata)
                VALUES ($1, $2, $3)
                """,
                user_id,
                event_type,
                metadata or {},
            )
