"""
Postgres access for the guardian service.

Repositories get connections only from user_conn() or system_conn(). Both
open a transaction and set app.user_id for the row-level security policies
in alembic/versions; an empty value means system context.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import asyncpg

from vibecheck import config

pool: asyncpg.Pool | None = None


async def init_pool() -> None:
    """Create the shared pool. Called from the app lifespan."""
    global pool
    settings = config.settings
    pool = await asyncpg.create_pool(
        dsn=settings.DATABASE_URL,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
        command_timeout=settings.DB_COMMAND_TIMEOUT_SECONDS,
        init=_register_codecs,
    )


async def close_pool() -> None:
    global pool
    if pool is not None:
        await pool.close()
        pool = None


async def _register_codecs(conn: asyncpg.Connection) -> None:
    """UUID columns decode to uuid.UUID; JSONB metadata and audit payloads to dicts."""
    await conn.set_type_codec("uuid", encoder=str, decoder=UUID, schema="pg_catalog")
    await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


@asynccontextmanager
async def _scoped_conn(app_user_id: str) -> AsyncIterator[asyncpg.Connection]:
    if pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")

    async with pool.acquire() as conn, conn.transaction():
        # is_local=true: the setting dies with the transaction, never leaks to the next borrower
        await conn.execute("SELECT set_config('app.user_id', $1, true)", app_user_id)
        yield conn


def user_conn(user_id: str | UUID):
    """
    Connection that only sees the given user's rows.

    Usage:
        async with user_conn(child_id) as conn:
            row = await conn.fetchrow("SELECT * FROM users WHERE id = $1", child_id)
    """
    return _scoped_conn(str(user_id))


def system_conn():
    """
    Connection in system context (no user scoping), inside a transaction.

    Used for work that spans users: resolving a guardian by email, linking
    a child to a guardian, audit and analytics inserts.
    """
    return _scoped_conn("")
