from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from app.models.owned_card import AcquiredVia


class MoveInfo(BaseModel):
    name: str
    type: str
    value: int
    description: str


class CardInfo(BaseModel):
    id: str
    name: str
    element: str
    tier: str
    max_hp: int
    moves: list[MoveInfo]
    value: int
    shop_price: float
    daily_claimable: bool


class OwnedCardResponse(BaseModel):
    id: str
    card_id: str
    owner_address: str
    acquired_via: AcquiredVia
    acquired_at: datetime
    card: Optional[CardInfo] = None

    model_config = {"from_attributes": True}


class BuyCard(BaseModel):
    card_id: str

    @field_validator("card_id")
    @classmethod
    def normalize_card_id(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("card_id must not be empty")
        return v


class DailyClaimStatusResponse(BaseModel):
    can_claim: bool
    next_claim_at: Optional[datetime] = None
    time_remaining: Optional[str] = None
