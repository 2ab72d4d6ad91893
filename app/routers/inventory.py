"""Inventory router: a wallet's collection and the ways to grow it."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.data.cards import CARD_CATALOG
from app.database import get_db
from app.dependencies import get_wallet_address
from app.models.owned_card import OwnedCard
from app.routers.cards import card_info
from app.schemas.card import BuyCard, DailyClaimStatusResponse, OwnedCardResponse
from app.services.inventory_service import (
    buy_card,
    can_claim_daily,
    claim_daily_card,
    format_time_remaining,
    get_owned_cards,
    give_starter_card,
)

router = APIRouter(prefix="/inventory", tags=["inventory"])


def _owned_response(owned: OwnedCard) -> OwnedCardResponse:
    card = CARD_CATALOG.get(owned.card_id)
    return OwnedCardResponse(
        id=owned.id,
        card_id=owned.card_id,
        owner_address=owned.owner_address,
        acquired_via=owned.acquired_via,
        acquired_at=owned.acquired_at,
        card=card_info(card) if card else None,
    )


@router.get("", response_model=list[OwnedCardResponse])
async def list_owned_cards(
    db: AsyncSession = Depends(get_db),
    wallet: str = Depends(get_wallet_address),
):
    # Records whose card left the catalog are hidden.
    owned = await get_owned_cards(db, wallet)
    return [_owned_response(o) for o in owned if o.card_id in CARD_CATALOG]


@router.post("/buy", response_model=OwnedCardResponse, status_code=status.HTTP_201_CREATED)
async def buy(
    body: BuyCard,
    db: AsyncSession = Depends(get_db),
    wallet: str = Depends(get_wallet_address),
):
    try:
        owned = await buy_card(db, wallet, body.card_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _owned_response(owned)


@router.get("/daily-claim", response_model=DailyClaimStatusResponse)
async def daily_claim_status(
    db: AsyncSession = Depends(get_db),
    wallet: str = Depends(get_wallet_address),
):
    claim = await can_claim_daily(db, wallet)
    return DailyClaimStatusResponse(
        can_claim=claim.can_claim,
        next_claim_at=claim.next_claim_at,
        time_remaining=format_time_remaining(claim.next_claim_at) if claim.next_claim_at else None,
    )


@router.post("/daily-claim", response_model=OwnedCardResponse, status_code=status.HTTP_201_CREATED)
async def daily_claim(
    db: AsyncSession = Depends(get_db),
    wallet: str = Depends(get_wallet_address),
):
    try:
        owned, _ = await claim_daily_card(db, wallet)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _owned_response(owned)


@router.post("/starter", response_model=OwnedCardResponse, status_code=status.HTTP_201_CREATED)
async def starter(
    db: AsyncSession = Depends(get_db),
    wallet: str = Depends(get_wallet_address),
):
    try:
        owned, _ = await give_starter_card(db, wallet)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _owned_response(owned)
