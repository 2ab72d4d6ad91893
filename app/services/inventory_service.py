"""Inventory service: which wallet owns which card instances.

Addresses are stored lowercase. A battle transfer reassigns the owner of the
loser's existing record in place, so an OwnedCard keeps its id for life.
"""

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.data.cards import CardDefinition, get_card, get_daily_claimable_cards
from app.models.owned_card import AcquiredVia, OwnedCard

logger = logging.getLogger(__name__)


@dataclass
class DailyClaimStatus:
    can_claim: bool
    next_claim_at: datetime | None = None


def normalize_address(address: str) -> str:
    return address.strip().lower()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def format_time_remaining(target: datetime, now: datetime | None = None) -> str:
    """Render the wait until target as "3h 12m", "45m" or "0s"."""
    now = now or datetime.now(timezone.utc)
    seconds = int((_as_utc(target) - _as_utc(now)).total_seconds())
    if seconds <= 0:
        return "0s"
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


async def get_owned_cards(db: AsyncSession, address: str) -> list[OwnedCard]:
    result = await db.execute(
        select(OwnedCard)
        .where(OwnedCard.owner_address == normalize_address(address))
        .order_by(OwnedCard.acquired_at.desc())
    )
    return list(result.scalars().all())


async def get_owned_card(db: AsyncSession, owned_card_id: str) -> OwnedCard | None:
    result = await db.execute(select(OwnedCard).where(OwnedCard.id == owned_card_id))
    return result.scalar_one_or_none()


async def find_owned_card(db: AsyncSession, owner_address: str, card_id: str) -> OwnedCard | None:
    """Return one of the owner's records for card_id (oldest first), or None."""
    result = await db.execute(
        select(OwnedCard)
        .where(
            OwnedCard.owner_address == normalize_address(owner_address),
            OwnedCard.card_id == card_id,
        )
        .order_by(OwnedCard.acquired_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


async def has_any_cards(db: AsyncSession, address: str) -> bool:
    result = await db.execute(
        select(OwnedCard.id)
        .where(OwnedCard.owner_address == normalize_address(address))
        .limit(1)
    )
    return result.first() is not None


async def insert_owned_card(
    db: AsyncSession, card_id: str, owner_address: str, acquired_via: AcquiredVia
) -> OwnedCard:
    owned = OwnedCard(
        card_id=card_id,
        owner_address=normalize_address(owner_address),
        acquired_via=acquired_via,
    )
    db.add(owned)
    await db.commit()
    await db.refresh(owned)
    return owned


async def reassign_owner(
    db: AsyncSession, owned_card_id: str, from_address: str, to_address: str
) -> OwnedCard:
    """Hand a card to a battle winner. Flushes but does not commit.

    Raises ValueError if the record is missing or not owned by from_address.
    """
    owned = await get_owned_card(db, owned_card_id)
    if owned is None or owned.owner_address != normalize_address(from_address):
        raise ValueError("Card not found or not owned by this address")

    owned.owner_address = normalize_address(to_address)
    owned.acquired_via = AcquiredVia.battle_win
    owned.acquired_at = datetime.now(timezone.utc)
    await db.flush()
    return owned


async def can_claim_daily(
    db: AsyncSession, address: str, now: datetime | None = None
) -> DailyClaimStatus:
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(OwnedCard.acquired_at)
        .where(
            OwnedCard.owner_address == normalize_address(address),
            OwnedCard.acquired_via == AcquiredVia.daily_claim,
        )
        .order_by(OwnedCard.acquired_at.desc())
        .limit(1)
    )
    last_claim = result.scalar_one_or_none()
    if last_claim is None:
        return DailyClaimStatus(can_claim=True)

    next_claim = _as_utc(last_claim) + timedelta(hours=settings.daily_claim_cooldown_hours)
    if _as_utc(now) >= next_claim:
        return DailyClaimStatus(can_claim=True)
    return DailyClaimStatus(can_claim=False, next_claim_at=next_claim)


async def buy_card(db: AsyncSession, address: str, card_id: str) -> OwnedCard:
    """Record a shop purchase. Payment itself is settled on-chain."""
    try:
        card = get_card(card_id)
    except KeyError:
        raise ValueError("Card not found in catalog")
    if card.shop_price <= 0:
        raise ValueError("This card cannot be purchased from the shop")
    owned = await insert_owned_card(db, card.id, address, AcquiredVia.shop)
    logger.info("Wallet %s bought %s", owned.owner_address, card.id)
    return owned


async def claim_daily_card(
    db: AsyncSession, address: str, rng: random.Random | None = None
) -> tuple[OwnedCard, CardDefinition]:
    status = await can_claim_daily(db, address)
    if not status.can_claim:
        remaining = format_time_remaining(status.next_claim_at) if status.next_claim_at else "later"
        raise ValueError(f"Daily claim not available. Try again in {remaining}.")

    claimable = get_daily_claimable_cards()
    if not claimable:
        raise ValueError("No daily claimable cards available")

    _rand = rng or random
    card = _rand.choice(claimable)
    owned = await insert_owned_card(db, card.id, address, AcquiredVia.daily_claim)
    logger.info("Wallet %s claimed daily card %s", owned.owner_address, card.id)
    return owned, card


async def give_starter_card(db: AsyncSession, address: str) -> tuple[OwnedCard, CardDefinition]:
    if await has_any_cards(db, address):
        raise ValueError("You already have cards in your collection")
    card = get_card(settings.starter_card_id)
    owned = await insert_owned_card(db, card.id, address, AcquiredVia.starter)
    logger.info("Wallet %s received starter card %s", owned.owner_address, card.id)
    return owned, card
