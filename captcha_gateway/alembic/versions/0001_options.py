"""Create the options table holding the settings record."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "0001_options"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "options",
        sa.Column("name", sa.String(length=191), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("name", name="pk_options"),
    )


def downgrade() -> None:
    op.drop_table("options")
