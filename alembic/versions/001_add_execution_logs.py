"""Add execution_logs table for recurring order execution history

Revision ID: 001_add_execution_logs
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_add_execution_logs"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "execution_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("recurring_order_id", sa.String(100), nullable=False),
        sa.Column("order_id", sa.String(100), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_execution_logs_recurring_order_id", "execution_logs", ["recurring_order_id"]
    )
    op.create_index("ix_execution_logs_timestamp", "execution_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_execution_logs_timestamp", table_name="execution_logs")
    op.drop_index("ix_execution_logs_recurring_order_id", table_name="execution_logs")
    op.drop_table("execution_logs")
