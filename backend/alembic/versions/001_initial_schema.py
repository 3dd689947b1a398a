"""Initial schema: tasks, images and audit logs

Revision ID: 001
Revises:
Create Date: 2026-10-16

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("owner", sa.String(255), nullable=False),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("priority", sa.String(20), nullable=False, server_default="MEDIUM"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("image_ids", postgresql.JSONB(), nullable=False, server_default="[]"),
        *_timestamps(),
    )
    op.create_index("ix_tasks_owner", "tasks", ["owner"])

    op.create_table(
        "images",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("hash", sa.String(64), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("content_type", sa.String(100), nullable=False),
        sa.Column("size_bytes", sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_images_hash", "images", ["hash"], unique=True)

    op.create_table(
        "logs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("user", sa.String(255), nullable=False),
        sa.Column("user_ip", sa.String(64), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("previous_data", postgresql.JSONB(), nullable=True),
        sa.Column("current_data", postgresql.JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_logs_user", "logs", ["user"])


def downgrade() -> None:
    op.drop_index("ix_logs_user", table_name="logs")
    op.drop_table("logs")
    op.drop_index("ix_images_hash", table_name="images")
    op.drop_table("images")
    op.drop_index("ix_tasks_owner", table_name="tasks")
    op.drop_table("tasks")
