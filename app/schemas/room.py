from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from app.models.room import RoomStatus, Winner


class Move(BaseModel):
    """Move object as transmitted through a room's move fields."""

    name: str
    type: Literal["attack", "power", "defense"]
    value: int = Field(ge=0)
    description: str = ""


class CardSnapshot(BaseModel):
    """By-value copy of a card definition taken when the card is staked."""

    id: str
    name: str
    element: str = ""
    tier: str = ""
    max_hp: int = Field(gt=0)
    moves: list[Move] = []

    def get_move(self, move_name: str) -> Move | None:
        return next((m for m in self.moves if m.name == move_name), None)


class RoomSnapshot(BaseModel):
    id: str
    match_id: str
    player1_address: str
    player2_address: Optional[str] = None
    player1_card: CardSnapshot
    player2_card: Optional[CardSnapshot] = None
    player1_hp: int
    player2_hp: Optional[int] = None
    player1_shield: int = 0
    player2_shield: int = 0
    player1_move: Optional[Move] = None
    player2_move: Optional[Move] = None
    action_log: list[str] = []
    status: RoomStatus
    winner: Optional[Winner] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
