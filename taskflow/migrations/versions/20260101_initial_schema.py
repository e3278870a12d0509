"""Initial schema: users, token blocklist, projects, tasks, tags and journal entries."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20260101_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("settings", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_user_email", "user", ["email"], unique=True)

    op.create_table(
        "token_blocklist",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("jti", sa.String(64), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE")),
        *_timestamps(),
    )
    op.create_index("ix_token_blocklist_jti", "token_blocklist", ["jti"], unique=True)
    op.create_index("ix_token_blocklist_user_id", "token_blocklist", ["user_id"])

    op.create_table(
        "project",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("color", sa.String(16), nullable=False, server_default="#6b7280"),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("metadata", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_project_user_id", "project", ["user_id"])
    op.create_index("ix_project_user_name", "project", ["user_id", "name"])
    op.create_index("ix_project_user_archived_order", "project", ["user_id", "is_archived", "order_index"])

    op.create_table(
        "task",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("project_id", sa.Integer(), sa.ForeignKey("project.id", ondelete="SET NULL")),
        sa.Column("parent_task_id", sa.Integer(), sa.ForeignKey("task.id", ondelete="CASCADE")),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("status", sa.String(32), nullable=False, server_default="todo"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("due_date", sa.DateTime()),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("metadata", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_task_user_id", "task", ["user_id"])
    op.create_index("ix_task_project_id", "task", ["project_id"])
    op.create_index("ix_task_parent_task_id", "task", ["parent_task_id"])
    op.create_index("ix_task_user_status", "task", ["user_id", "status"])
    op.create_index("ix_task_user_due_date", "task", ["user_id", "due_date"])
    op.create_index("ix_task_project_status", "task", ["project_id", "status"])

    op.create_table(
        "tag",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("color", sa.String(16), nullable=False, server_default="#6b7280"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "name", name="uq_tag_user_name"),
    )
    op.create_index("ix_tag_user_id", "tag", ["user_id"])

    op.create_table(
        "task_tag",
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("task.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("tag_id", sa.Integer(), sa.ForeignKey("tag.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_task_tag_tag_id", "task_tag", ["tag_id"])

    op.create_table(
        "journal_entry",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255)),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("entry_type", sa.String(32), nullable=False, server_default="general"),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("time_of_day", sa.String(16)),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("mood_rating", sa.Integer()),
        sa.Column("energy_level", sa.Integer()),
        sa.Column("related_task_ids", sa.JSON(), nullable=False),
        sa.Column("related_project_ids", sa.JSON(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reading_time_minutes", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_journal_entry_user_id", "journal_entry", ["user_id"])
    op.create_index("ix_journal_entry_user_date", "journal_entry", ["user_id", "entry_date"])
    op.create_index("ix_journal_entry_user_type", "journal_entry", ["user_id", "entry_type"])


def downgrade() -> None:
    op.drop_table("journal_entry")
    op.drop_table("task_tag")
    op.drop_table("tag")
    op.drop_table("task")
    op.drop_table("project")
    op.drop_table("token_blocklist")
    op.drop_table("user")
