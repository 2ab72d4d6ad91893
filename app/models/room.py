import enum
import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class RoomStatus(str, enum.Enum):
    waiting = "waiting"
    battle = "battle"
    finished = "finished"


class Winner(str, enum.Enum):
    player1 = "player1"
    player2 = "player2"
    draw = "draw"


class Room(Base):
    """One shared record per match, keyed by the short room code.

    Card snapshots are copied by value at stake time. Moves hold the pending
    move of the current round and are cleared once the round resolves.
    """

    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(4), primary_key=True, index=True)
    match_id: Mapped[str] = mapped_column(
        String(36), nullable=False, unique=True, default=lambda: str(uuid.uuid4())
    )
    player1_address: Mapped[str] = mapped_column(String(64), nullable=False)
    player2_address: Mapped[str | None] = mapped_column(String(64), nullable=True, default=None)
    player1_card: Mapped[dict] = mapped_column(JSON, nullable=False)
    player2_card: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    player1_hp: Mapped[int] = mapped_column(Integer, nullable=False)
    player2_hp: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)
    player1_shield: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    player2_shield: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    player1_move: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    player2_move: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)
    action_log: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[RoomStatus] = mapped_column(
        Enum(RoomStatus), nullable=False, default=RoomStatus.waiting
    )
    winner: Mapped[Winner | None] = mapped_column(Enum(Winner), nullable=True, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
