"""Add reminder columns to tasks.

Revision ID: 5e2b8f4a9c13
Revises: 1a7c3e9d2b40
Create Date: 2026-10-05 00:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5e2b8f4a9c13"
down_revision = "1a7c3e9d2b40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Add reminder state; existing rows get a disabled exact reminder."""
    with op.batch_alter_table("tasks") as batch_op:
        batch_op.add_column(
            sa.Column(
                "reminder_enabled",
                sa.Boolean(),
                nullable=False,
                server_default=sa.false(),
            ),
        )
        batch_op.add_column(
            sa.Column(
                "reminder_type",
                sa.String(length=8),
                nullable=False,
                server_default="exact",
            ),
        )
        batch_op.add_column(sa.Column("reminder_time", sa.DateTime(), nullable=True))
        batch_op.add_column(
            sa.Column(
                "reminder_offset_minutes",
                sa.Integer(),
                nullable=False,
                server_default=sa.text("0"),
            ),
        )


def downgrade() -> None:
    with op.batch_alter_table("tasks") as batch_op:
        batch_op.drop_column("reminder_offset_minutes")
        batch_op.drop_column("reminder_time")
        batch_op.drop_column("reminder_type")
        batch_op.drop_column("reminder_enabled")
