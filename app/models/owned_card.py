import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class AcquiredVia(str, enum.Enum):
    shop = "shop"
    daily_claim = "daily_claim"
    battle_win = "battle_win"
    starter = "starter"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OwnedCard(Base):
    """Ownership of one card instance. The id survives battle transfers."""

    __tablename__ = "owned_cards"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    card_id: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    acquired_via: Mapped[AcquiredVia] = mapped_column(Enum(AcquiredVia), nullable=False)
    acquired_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
