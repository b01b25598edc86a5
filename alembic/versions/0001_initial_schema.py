"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


chore_difficulty_enum = sa.Enum("easy", "medium", "hard", name="chore_difficulty")
chore_status_enum = sa.Enum("pending", "completed", "approved", name="chore_status")
recurrence_pattern_enum = sa.Enum("daily", "weekly", name="recurrence_pattern")


def upgrade() -> None:
    op.create_table(
        "families",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "kids",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("points", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_xp", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("current_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("longest_streak", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_activity_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_kids_family_id", "kids", ["family_id"])

    op.create_table(
        "chores",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("difficulty", chore_difficulty_enum, server_default=sa.text("'easy'"), nullable=False),
        sa.Column("status", chore_status_enum, server_default=sa.text("'pending'"), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("recurrence_pattern", recurrence_pattern_enum, nullable=True),
        sa.Column("parent_chore_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.ForeignKeyConstraint(["assigned_to"], ["kids.id"]),
        sa.ForeignKeyConstraint(["parent_chore_id"], ["chores.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "(is_recurring AND recurrence_pattern IS NOT NULL) OR (NOT is_recurring AND recurrence_pattern IS NULL)",
            name="ck_chores_recurring_pattern",
        ),
        sa.CheckConstraint("points BETWEEN 1 AND 100", name="ck_chores_points_range"),
    )
    op.create_index("ix_chores_family_id_status", "chores", ["family_id", "status"])
    op.create_index("ix_chores_parent_chore_id", "chores", ["parent_chore_id"])

    op.create_table(
        "rewards",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cost", sa.Integer(), nullable=False),
        sa.Column("icon", sa.String(length=32), nullable=True),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("cost BETWEEN 1 AND 500", name="ck_rewards_cost_range"),
    )

    op.create_table(
        "event_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_id", sa.Integer(), nullable=False),
        sa.Column("kid_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=255), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"]),
        sa.ForeignKeyConstraint(["kid_id"], ["kids.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_event_log_family_id_created_at", "event_log", ["family_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_event_log_family_id_created_at", table_name="event_log")
    op.drop_table("event_log")
    op.drop_table("rewards")
    op.drop_index("ix_chores_parent_chore_id", table_name="chores")
    op.drop_index("ix_chores_family_id_status", table_name="chores")
    op.drop_table("chores")
    op.drop_index("ix_kids_family_id", table_name="kids")
    op.drop_table("kids")
    op.drop_table("families")

    bind = op.get_bind()
    recurrence_pattern_enum.drop(bind, checkfirst=True)
    chore_status_enum.drop(bind, checkfirst=True)
    chore_difficulty_enum.drop(bind, checkfirst=True)
