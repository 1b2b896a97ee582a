"""create_backlogs_and_releases

Revision ID: 8c4e2b6a1d93
Revises: 3f1a9c2d7b10
Create Date: 2026-10-12 09:15:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '8c4e2b6a1d93'
down_revision: Union[str, None] = '3f1a9c2d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE TYPE backlog_type AS ENUM ('feature', 'bug', 'improvement')")
    op.execute("CREATE TYPE backlog_priority AS ENUM ('low', 'medium', 'high')")
    op.execute("""
        CREATE TABLE backlogs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            title VARCHAR(255) NOT NULL,
            description TEXT,
            type backlog_type NOT NULL DEFAULT 'feature',
            priority backlog_priority NOT NULL DEFAULT 'medium',
            position INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_backlogs_project_id ON backlogs(project_id)")

    op.execute("""
        CREATE TABLE releases (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            name VARCHAR(255) NOT NULL,
            version VARCHAR(64) NOT NULL,
            release_date TIMESTAMPTZ NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_releases_project_id ON releases(project_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS releases")
    op.execute("DROP TABLE IF EXISTS backlogs")
    op.execute("DROP TYPE IF EXISTS backlog_priority")
    op.execute("DROP TYPE IF EXISTS backlog_type")
