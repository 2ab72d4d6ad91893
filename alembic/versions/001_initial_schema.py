"""initial schema: rooms and owned_cards

Revision ID: 001
Revises:
Create Date: 2026-10-05

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=4), nullable=False),
        sa.Column("match_id", sa.String(length=36), nullable=False),
        sa.Column("player1_address", sa.String(length=64), nullable=False),
        sa.Column("player2_address", sa.String(length=64), nullable=True),
        sa.Column("player1_card", sa.JSON(), nullable=False),
        sa.Column("player2_card", sa.JSON(), nullable=True),
        sa.Column("player1_hp", sa.Integer(), nullable=False),
        sa.Column("player2_hp", sa.Integer(), nullable=True),
        sa.Column("player1_shield", sa.Integer(), nullable=False),
        sa.Column("player2_shield", sa.Integer(), nullable=False),
        sa.Column("player1_move", sa.JSON(), nullable=True),
        sa.Column("player2_move", sa.JSON(), nullable=True),
        sa.Column("action_log", sa.JSON(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("waiting", "battle", "finished", name="roomstatus"),
            nullable=False,
        ),
        sa.Column(
            "winner",
            sa.Enum("player1", "player2", "draw", name="winner"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id"),
    )
    op.create_index(op.f("ix_rooms_id"), "rooms", ["id"], unique=False)

    op.create_table(
        "owned_cards",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("card_id", sa.String(length=64), nullable=False),
        sa.Column("owner_address", sa.String(length=64), nullable=False),
        sa.Column(
            "acquired_via",
            sa.Enum("shop", "daily_claim", "battle_win", "starter", name="acquiredvia"),
            nullable=False,
        ),
        sa.Column("acquired_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_owned_cards_owner_address"), "owned_cards", ["owner_address"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_owned_cards_owner_address"), table_name="owned_cards")
    op.drop_table("owned_cards")
    op.drop_index(op.f("ix_rooms_id"), table_name="rooms")
    op.drop_table("rooms")
    sa.Enum(name="acquiredvia").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="winner").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="roomstatus").drop(op.get_bind(), checkfirst=True)
