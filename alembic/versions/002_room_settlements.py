"""add room_settlements table

Revision ID: 002
Revises: 001
Create Date: 2026-10-12

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "room_settlements",
        sa.Column("match_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=4), nullable=False),
        sa.Column("winner_address", sa.String(length=64), nullable=False),
        sa.Column("owned_card_id", sa.String(length=36), nullable=True),
        sa.Column(
            "settled_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("match_id"),
    )
    op.create_index(
        op.f("ix_room_settlements_room_id"), "room_settlements", ["room_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_room_settlements_room_id"), table_name="room_settlements")
    op.drop_table("room_settlements")
