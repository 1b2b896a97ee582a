"""create_issues_table

Revision ID: e19a7c3b5f02
Revises: b72d5e0f4a68
Create Date: 2026-10-12 09:45:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = 'e19a7c3b5f02'
down_revision: Union[str, None] = 'b72d5e0f4a68'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Enum labels are the Python member names
    op.execute(
        "CREATE TYPE issue_type AS ENUM ('task', 'story', 'epic', 'subtask', 'bug', 'feedback')"
    )
    op.execute(
        "CREATE TYPE issue_status AS ENUM "
        "('backlog', 'to_do', 'in_progress', 'in_review', 'in_testing', 'done')"
    )
    op.execute("CREATE TYPE issue_priority AS ENUM ('low', 'medium', 'high')")
    op.execute("CREATE TYPE issue_priority_level AS ENUM ('critical', 'major', 'minor')")
    op.execute(
        "CREATE TYPE issue_resolution AS ENUM ('fixed', 'wont_fix', 'duplicate', 'incomplete')"
    )
    op.execute("""
        CREATE TABLE issues (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            issue_number INTEGER NOT NULL,
            key VARCHAR(32) NOT NULL,
            title VARCHAR(255) NOT NULL,
            description TEXT,
            type issue_type NOT NULL DEFAULT 'task',
            parent_task_id UUID REFERENCES issues(id) ON DELETE SET NULL,
            epic_id UUID REFERENCES issues(id) ON DELETE SET NULL,
            status issue_status NOT NULL DEFAULT 'backlog',
            assignee_id VARCHAR(64) NOT NULL,
            reporter_id VARCHAR(64) NOT NULL,
            priority issue_priority NOT NULL DEFAULT 'medium',
            priority_level issue_priority_level,
            sprint_id UUID REFERENCES sprints(id) ON DELETE SET NULL,
            due_date TIMESTAMPTZ,
            labels JSONB NOT NULL DEFAULT '[]'::jsonb,
            attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
            watchers JSONB NOT NULL DEFAULT '[]'::jsonb,
            votes INTEGER NOT NULL DEFAULT 0,
            story_points INTEGER,
            progress INTEGER NOT NULL DEFAULT 0,
            total_time_spent BIGINT NOT NULL DEFAULT 0,
            resolution issue_resolution,
            resolution_date TIMESTAMPTZ,
            is_deleted BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_issues_project_number UNIQUE (project_id, issue_number)
        )
    """)
    op.execute(
        "CREATE UNIQUE INDEX uq_issues_project_title_live ON issues(project_id, title) "
        "WHERE NOT is_deleted"
    )
    op.execute("CREATE INDEX ix_issues_project_id ON issues(project_id)")
    op.execute("CREATE INDEX ix_issues_key ON issues(key)")
    op.execute("CREATE INDEX ix_issues_status ON issues(status)")
    op.execute("CREATE INDEX ix_issues_assignee_id ON issues(assignee_id)")
    op.execute("CREATE INDEX ix_issues_sprint_id ON issues(sprint_id)")
    op.execute("CREATE INDEX idx_issues_created_at ON issues(created_at)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS issues")
    op.execute("DROP TYPE IF EXISTS issue_resolution")
    op.execute("DROP TYPE IF EXISTS issue_priority_level")
    op.execute("DROP TYPE IF EXISTS issue_priority")
    op.execute("DROP TYPE IF EXISTS issue_status")
    op.execute("DROP TYPE IF EXISTS issue_type")
