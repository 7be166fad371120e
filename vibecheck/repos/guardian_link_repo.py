"""Repository for guardian link operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import asyncpg

from vibecheck.db import system_conn
from vibecheck.models.guardian import GuardianLink
from vibecheck.repos import audit_repo


def _row_to_guardian_link(row: asyncpg.Record) -> GuardianLink:
    """Convert a database row to a GuardianLink model."""
    return GuardianLink(
        id=row["id"],
        child_id=row["child_id"],
        guardian_email=row["guardian_email"],
        method=row["method"],
        status=row["status"],
        code_hash=row["code_hash"],
        code_expires_at=row["code_expires_at"],
        last_sent_at=row["last_sent_at"],
        attempts=row["attempts"],
        verified_at=row["verified_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class GuardianLinkRepo:
    """All guardian link database operations.

    Uses system_conn throughout: a link touches the child's row and, once
    verified, the guardian's account, so it cannot be scoped to one user.
    """

    async def get(self, child_id: UUID, guardian_email: str) -> GuardianLink | None:
        """
        Get the link for a (child, guardian email) pair.

        Args:
            child_id: Requesting child's user UUID
            guardian_email: Normalized guardian email

        Returns:
            GuardianLink if found, None otherwise
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                SELECT * FROM guardian_links
                WHERE child_id = $1 AND guardian_email = $2
                """,
                child_id,
                guardian_email,
            )
            return _row_to_guardian_link(row) if row else None

    async def get_latest_for_child(self, child_id: UUID) -> GuardianLink | None:
        """Get the child's most recently updated link, if any."""
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                SELECT * FROM guardian_links
                WHERE child_id = $1
                ORDER BY updated_at DESC
                LIMIT 1
                """,
                child_id,
            )
            return _row_to_guardian_link(row) if row else None

    async def issue_code(
        self,
        child_id: UUID,
        guardian_email: str,
        code_hash: str,
        code_expires_at: datetime,
        now: datetime,
        window_start: datetime,
        max_attempts: int,
        cooldown_cutoff: datetime,
    ) -> GuardianLink | None:
        """
        Upsert the link with a freshly issued code.

        A row created before window_start starts a new window (attempts=1).
        The update is conditional on both rate-limit gates and on the link
        not being verified yet, so a concurrent request that already used up
        the gate cannot push the row past it.

        Args:
            child_id: Requesting child's user UUID
            guardian_email: Normalized guardian email
            code_hash: Digest of the new code
            code_expires_at: Expiry of the new code
            now: Issue time, stored as last_sent_at
            window_start: Rows created before this begin a new attempt window
            max_attempts: Daily cap on issued codes
            cooldown_cutoff: last_sent_at must be at or before this

        Returns:
            The stored GuardianLink, or None if a gate or verified status blocked the write
        """
        async with system_conn() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO guardian_links (
                    child_id, guardian_email, method, status, code_hash,
                    code_expires_at, last_sent_at, attempts, created_at, updated_at
                )
                VALUES ($1, $2, 'email_code', 'pending', $3, $4, $5, 1, $5, $5)
                ON CONFLICT (child_id, guardian_email) DO UPDATE SET
                    method = 'email_code',
                    status = 'pending',
                    code_hash = EXCLUDED.code_hash,
                    code_expires_at = EXCLUDED.code_expires_at,
                    last_sent_at = EXCLUDED.last_sent_at,
                    attempts = CASE
                        WHEN guardian_links.created_at < $6 THEN 1
                        ELSE guardian_links.attempts + 1
                    END,
                    created_at = CASE
                        WHEN guardian_links.created_at < $6 THEN EXCLUDED.created_at
                        ELSE guardian_links.created_at
                    END,
                    updated_at = EXCLUDED.updated_at
                WHERE guardian_links.status <> 'verified'
                  AND (guardian_links.created_at < $6 OR guardian_links.attempts < $7)
                  AND (guardian_links.last_sent_at IS NULL OR guardian_links.last_sent_at <= $8)
                RETURNING *
                """,
                child_id,
                guardian_email,
                code_hash,
                code_expires_at,
                now,
                window_start,
                max_attempts,
                cooldown_cutoff,
            )
            return _row_to_guardian_link(row) if row else None

    async def mark_expired(self, link_id: UUID) -> bool:
        """
        Move a pending link to expired.

        Returns:
            True if the row changed, False if it was no longer pending
        """
        async with system_conn() as conn:
            result = await conn.execute(
                """
                UPDATE guardian_links
                SET status = 'expired', updated_at = now()
                WHERE id = $1 AND status = 'pending'
                """,
                link_id,
            )
            return result == "UPDATE 1"

    async def complete_verification(
        self,
        link: GuardianLink,
        guardian_id: UUID,
        verified_at: datetime,
    ) -> bool:
        """
        Flip a pending link to verified and link the child to the guardian.

        Status flip, profile update and audit record commit in one
        transaction. The flip only matches a row that is still pending, so
        of two concurrent verifications exactly one gets True.

        Args:
            link: The pending link being verified
            guardian_id: Guardian's user UUID
            verified_at: Verification time

        Returns:
            True if this call performed the transition, False if another call already had
        """
        async with system_conn() as conn:
            result = await conn.execute(
                """
                UPDATE guardian_links
                SET status = 'verified', verified_at = $2, updated_at = $2
                WHERE id = $1 AND status = 'pending'
                """,
                link.id,
                verified_at,
            )
            if result != "UPDATE 1":
                return False

            await conn.execute(
                "UPDATE users SET parent_id = $2 WHERE id = $1",
                link.child_id,
                guardian_id,
            )
            await audit_repo.record(
                conn,
                actor="system",
                action="guardian_verified",
                target=f"child:{link.child_id}",
                input_json={"guardian_email": link.guardian_email},
                output_json={"verified": True, "guardian_id": str(guardian_id)},
                status="approved",
            )
            return True
