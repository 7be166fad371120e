"""add_guardian_links

Revision ID: 002
Revises: 001
Create Date: 2026-03-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per (child, guardian email). Holds the current code digest and
    # the persistent rate-limit counters (attempts in window, last send).
    op.execute("""
        CREATE TABLE guardian_links (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            child_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            guardian_email TEXT NOT NULL CHECK (char_length(guardian_email) <= 255),
            method TEXT NOT NULL DEFAULT 'email_code',
            status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'verified', 'expired')),
            code_hash TEXT,
            code_expires_at TIMESTAMPTZ,
            last_sent_at TIMESTAMPTZ,
            attempts INTEGER NOT NULL DEFAULT 0,
            verified_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            UNIQUE (child_id, guardian_email)
        );
    """)

    op.execute("CREATE INDEX idx_guardian_links_child_updated ON guardian_links(child_id, updated_at DESC);")
    op.execute("CREATE INDEX idx_guardian_links_email ON guardian_links(guardian_email);")

    op.execute("ALTER TABLE guardian_links ENABLE ROW LEVEL SECURITY;")
    op.execute("ALTER TABLE guardian_links FORCE ROW LEVEL SECURITY;")

    # Children see their own links; system context sees all
    op.execute("""
        CREATE POLICY guardian_links_all_own
        ON guardian_links
        FOR ALL
        USING (get_app_user_id() IS NULL OR child_id = get_app_user_id());
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS guardian_links CASCADE;")
