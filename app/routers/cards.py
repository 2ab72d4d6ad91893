from fastapi import APIRouter, HTTPException, status

from app.data.cards import CardDefinition, get_card, get_shop_cards, list_cards
from app.schemas.card import CardInfo, MoveInfo

router = APIRouter(prefix="/cards", tags=["cards"])


def card_info(card: CardDefinition) -> CardInfo:
    return CardInfo(
        id=card.id,
        name=card.name,
        element=card.element,
        tier=card.tier.value,
        max_hp=card.max_hp,
        moves=[MoveInfo(**m.to_dict()) for m in card.moves],
        value=card.value,
        shop_price=card.shop_price,
        daily_claimable=card.daily_claimable,
    )


@router.get("", response_model=list[CardInfo])
async def get_catalog():
    return [card_info(c) for c in list_cards()]


@router.get("/shop", response_model=list[CardInfo])
async def get_shop():
    """Cards sold in the shop, cheapest first."""
    return [card_info(c) for c in sorted(get_shop_cards(), key=lambda c: c.shop_price)]


@router.get("/{card_id}", response_model=CardInfo)
async def get_catalog_card(card_id: str):
    try:
        card = get_card(card_id)
    except KeyError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Card not found")
    return card_info(card)
