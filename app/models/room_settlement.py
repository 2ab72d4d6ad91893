"""RoomSettlement model: marks a finished match whose stake was already paid out."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class RoomSettlement(Base):
    """At most one row per match.

    Keyed by Room.match_id rather than the room code: codes are reused once a
    room is deleted on replay. owned_card_id is None when the loser no longer
    held the staked card.
    """

    __tablename__ = "room_settlements"

    match_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    room_id: Mapped[str] = mapped_column(String(4), nullable=False, index=True)
    winner_address: Mapped[str] = mapped_column(String(64), nullable=False)
    owned_card_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    settled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
