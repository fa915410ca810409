"""Add workflow_executions table

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

INDEXES = [
    ("ix_workflow_executions_workflow_type", ["workflow_type"]),
    ("ix_workflow_executions_tenant_id", ["tenant_id"]),
    ("ix_workflow_executions_subject_id", ["subject_id"]),
    ("ix_workflow_executions_status", ["status"]),
    ("ix_workflow_executions_external_handle", ["external_handle"]),
    ("ix_workflow_executions_tenant_created", ["tenant_id", "created_at"]),
    ("ix_workflow_executions_status_retry", ["status", "next_retry_at"]),
]


def upgrade() -> None:
    op.create_table(
        "workflow_executions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("workflow_type", sa.String(length=50), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("subject_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("input_data", postgresql.JSONB(), nullable=True),
        sa.Column("output_data", postgresql.JSONB(), nullable=True),
        sa.Column("runner_data", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("external_handle", sa.String(length=255), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_message", sa.String(length=1000), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("next_retry_at", sa.DateTime(), nullable=True),
        sa.Column("last_polled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("failed_at", sa.DateTime(), nullable=True),
        sa.Column("last_retry_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'retrying', 'completed', 'failed', 'cancelled')",
            name="ck_workflow_executions_status",
        ),
        sa.CheckConstraint("retry_count >= 0", name="ck_workflow_executions_retry_count"),
        schema="public",
    )
    for name, columns in INDEXES:
        op.create_index(name, "workflow_executions", columns, unique=False, schema="public")


def downgrade() -> None:
    for name, _ in reversed(INDEXES):
        op.drop_index(name, table_name="workflow_executions", schema="public")
    op.drop_table("workflow_executions", schema="public")
