"""create_sprints_table

Revision ID: b72d5e0f4a68
Revises: 8c4e2b6a1d93
Create Date: 2026-10-12 09:30:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = 'b72d5e0f4a68'
down_revision: Union[str, None] = '8c4e2b6a1d93'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE TYPE sprint_status AS ENUM ('planned', 'active', 'completed')")
    op.execute("""
        CREATE TABLE sprints (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            name VARCHAR(100) NOT NULL,
            status sprint_status NOT NULL DEFAULT 'planned',
            start_date TIMESTAMPTZ NOT NULL,
            end_date TIMESTAMPTZ NOT NULL,
            version INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_sprints_project_name UNIQUE (project_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_sprints_project_id ON sprints(project_id)")
    op.execute("CREATE INDEX idx_sprints_status ON sprints(project_id, status)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sprints")
    op.execute("DROP TYPE IF EXISTS sprint_status")
