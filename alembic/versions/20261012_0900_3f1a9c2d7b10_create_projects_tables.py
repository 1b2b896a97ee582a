"""create_projects_tables

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2026-10-12 09:00:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '3f1a9c2d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE TYPE project_status AS ENUM ('active', 'completed', 'archived')")
    op.execute("""
        CREATE TABLE projects (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            description TEXT,
            owner_id VARCHAR(64) NOT NULL,
            members JSONB NOT NULL DEFAULT '[]'::jsonb,
            status project_status NOT NULL DEFAULT 'active',
            is_deleted BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE UNIQUE INDEX uq_projects_name_live ON projects(name) WHERE NOT is_deleted")
    op.execute("CREATE INDEX ix_projects_owner_id ON projects(owner_id)")

    op.execute("""
        CREATE TABLE project_issue_counters (
            project_id UUID PRIMARY KEY REFERENCES projects(id) ON DELETE CASCADE,
            last_number INTEGER NOT NULL DEFAULT 0
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS project_issue_counters")
    op.execute("DROP TABLE IF EXISTS projects")
    op.execute("DROP TYPE IF EXISTS project_status")
