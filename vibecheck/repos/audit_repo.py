"""Audit log repository."""

from typing import Any

from asyncpg import Connection


async def record(
    conn: Connection,
    *,
    actor: str,
    action: str,
    target: str | None,
    input_json: dict[str, Any],
    output_json: dict[str, Any] | None,
    status: str,
) -> None:
    """Insert an audit row on the caller's connection, inside its transaction."""
    await conn.execute(
        """
        INSERT INTO audit_log (actor, action, target, input_json, output_json, status)
        VALUES ($1, $2, $3, $4, $5, $6)
        """,
        actor,
        action,
        target,
        input_json,
        output_json,
        status,
    )
