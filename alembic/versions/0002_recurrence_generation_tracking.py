"""track recurring generation separately from updated_at

Revision ID: 0002_recurrence_generation
Revises: 0001_initial_schema
Create Date: 2026-10-25 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002_recurrence_generation"
down_revision: str | None = "0001_initial_schema"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "chores",
        sa.Column("is_instance", sa.Boolean(), server_default=sa.false(), nullable=False),
    )
    op.add_column(
        "chores",
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.execute(sa.text("UPDATE chores SET is_instance = TRUE WHERE parent_chore_id IS NOT NULL"))
    op.create_index("ix_event_log_kid_id_created_at", "event_log", ["kid_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_event_log_kid_id_created_at", table_name="event_log")
    op.drop_column("chores", "last_generated_at")
    op.drop_column("chores", "is_instance")
