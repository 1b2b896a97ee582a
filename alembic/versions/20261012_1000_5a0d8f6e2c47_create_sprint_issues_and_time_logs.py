"""create_sprint_issues_and_time_logs

Revision ID: 5a0d8f6e2c47
Revises: e19a7c3b5f02
Create Date: 2026-10-12 10:00:00

"""
from typing import Sequence, Union

from alembic import op

revision: str = '5a0d8f6e2c47'
down_revision: Union[str, None] = 'e19a7c3b5f02'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE sprint_issues (
            sprint_id UUID NOT NULL REFERENCES sprints(id) ON DELETE CASCADE,
            issue_id UUID NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
            position INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (sprint_id, issue_id)
        )
    """)

    op.execute("""
        CREATE TABLE sprint_time_logs (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            sprint_id UUID NOT NULL REFERENCES sprints(id) ON DELETE CASCADE,
            issue_id UUID NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
            assignee_id VARCHAR(64) NOT NULL,
            start_time TIMESTAMPTZ NOT NULL,
            end_time TIMESTAMPTZ,
            time_spent BIGINT NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_sprint_time_logs_sprint_id ON sprint_time_logs(sprint_id)")
    op.execute("CREATE INDEX ix_sprint_time_logs_issue_id ON sprint_time_logs(issue_id)")
    # One running log per assignee per sprint
    op.execute(
        "CREATE UNIQUE INDEX uq_sprint_time_logs_running "
        "ON sprint_time_logs(sprint_id, assignee_id) WHERE end_time IS NULL"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS sprint_time_logs")
    op.execute("DROP TABLE IF EXISTS sprint_issues")
