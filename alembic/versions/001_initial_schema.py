"""Initial schema: users, audit log and analytics events with RLS.

Revision ID: 001
Revises:
Create Date: 2026-03-01
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # NULL when no user context is set (system_conn), so policies never cast ''
    op.execute("""
        CREATE OR REPLACE FUNCTION get_app_user_id() RETURNS UUID
        LANGUAGE sql STABLE AS $$
            SELECT NULLIF(current_setting('app.user_id', true), '')::uuid
        $$;
    """)

    op.execute("""
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email TEXT UNIQUE NOT NULL,
            first_name TEXT,
            language TEXT NOT NULL DEFAULT 'en',
            is_parent BOOLEAN NOT NULL DEFAULT false,
            parent_id UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("CREATE INDEX idx_users_parent ON users(parent_id);")

    op.execute("ALTER TABLE users ENABLE ROW LEVEL SECURITY;")
    op.execute("ALTER TABLE users FORCE ROW LEVEL SECURITY;")

    # Users see and update their own row; system context sees all
    op.execute("""
        CREATE POLICY users_all_own
        ON users
        FOR ALL
        USING (get_app_user_id() IS NULL OR id = get_app_user_id());
    """)

    # Append-only audit log, written via system_conn inside the caller's transaction
    op.execute("""
        CREATE TABLE audit_log (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            actor TEXT NOT NULL,
            action TEXT NOT NULL,
            target TEXT,
            input_json JSONB NOT NULL DEFAULT '{}'::jsonb,
            output_json JSONB,
            status TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("CREATE INDEX idx_audit_log_action_target ON audit_log(action, target);")
    op.execute("CREATE INDEX idx_audit_log_created ON audit_log(created_at);")

    op.execute("""
        CREATE TABLE analytics_events (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            event_type TEXT NOT NULL,
            event_metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("CREATE INDEX idx_analytics_events_user_type ON analytics_events(user_id, event_type);")


def downgrade():
    op.execute("DROP TABLE IF EXISTS analytics_events CASCADE;")
    op.execute("DROP TABLE IF EXISTS audit_log CASCADE;")
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS get_app_user_id();")
