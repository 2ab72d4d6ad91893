"""Static MonadMons card catalog.

Tiers determine rarity, base stats and trade value. Cards reach a wallet via
the shop, the daily claim, the starter grant, or a battle win.
"""

import enum
from dataclasses import dataclass, field
from typing import Any


class CardTier(str, enum.Enum):
    common = "Common"
    uncommon = "Uncommon"
    rare = "Rare"
    epic = "Epic"
    legendary = "Legendary"


class MoveType(str, enum.Enum):
    attack = "attack"
    power = "power"
    defense = "defense"


@dataclass(frozen=True)
class MoveData:
    name: str
    type: MoveType
    value: int
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "value": self.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class CardDefinition:
    id: str
    name: str
    element: str
    tier: CardTier
    max_hp: int
    moves: list[MoveData] = field(default_factory=list)
    value: int = 0           # trade value in points
    shop_price: float = 0.0  # price in MON; 0 means not sold in the shop
    daily_claimable: bool = False

    def snapshot(self) -> dict[str, Any]:
        """Copy of the battle-relevant definition, stored by value in a room."""
        return {
            "id": self.id,
            "name": self.name,
            "element": self.element,
            "tier": self.tier.value,
            "max_hp": self.max_hp,
            "moves": [m.to_dict() for m in self.moves],
        }


CARD_CATALOG: dict[str, CardDefinition] = {
    "pikachu": CardDefinition(
        id="pikachu",
        name="Pikachu",
        element="Electric",
        tier=CardTier.common,
        max_hp=160,
        moves=[
            MoveData("Thunder Shock", MoveType.attack, 30, "A basic electric jolt."),
            MoveData("Quick Attack", MoveType.attack, 25, "Strikes fast."),
            MoveData("Double Team", MoveType.defense, 15, "Raises evasion."),
        ],
        value=100,
        shop_price=0.0,
        daily_claimable=True,
    ),
    "venusaur": CardDefinition(
        id="venusaur",
        name="Venusaur",
        element="Grass / Poison",
        tier=CardTier.uncommon,
        max_hp=220,
        moves=[
            MoveData("Vine Whip", MoveType.attack, 25, "Lashes with vines."),
            MoveData("Solar Beam", MoveType.power, 60, "Harnesses sunlight."),
            MoveData("Synthesis", MoveType.defense, 40, "Recovers HP using sunlight."),
        ],
        value=200,
        shop_price=0.05,
        daily_claimable=True,
    ),
    "blastoise": CardDefinition(
        id="blastoise",
        name="Blastoise",
        element="Water",
        tier=CardTier.rare,
        max_hp=260,
        moves=[
            MoveData("Water Gun", MoveType.attack, 30, "A stream of water."),
            MoveData("Hydro Pump", MoveType.power, 65, "Fires a massive water blast."),
            MoveData("Shell Smash", MoveType.defense, 30, "Raises shield power."),
        ],
        value=500,
        shop_price=0.08,
    ),
    "charizard": CardDefinition(
        id="charizard",
        name="Charizard",
        element="Fire / Flying",
        tier=CardTier.epic,
        max_hp=300,
        moves=[
            MoveData("Flamethrower", MoveType.attack, 40, "A scorching flame attack."),
            MoveData("Fire Blast", MoveType.power, 75, "An intense blast of fire."),
            MoveData("Smokescreen", MoveType.defense, 20, "Lowers accuracy."),
        ],
        value=1000,
        shop_price=0.1,
    ),
    "mewtwo": CardDefinition(
        id="mewtwo",
        name="Mewtwo",
        element="Psychic",
        tier=CardTier.legendary,
        max_hp=360,
        moves=[
            MoveData("Psychic", MoveType.attack, 50, "A powerful psychic wave."),
            MoveData("Shadow Ball", MoveType.power, 85, "Hurls a shadowy blob."),
            MoveData("Barrier", MoveType.defense, 35, "Raises an unbreakable wall."),
        ],
        value=2500,
        shop_price=0.15,
    ),
    "mew": CardDefinition(
        id="mew",
        name="Mew",
        element="Psychic",
        tier=CardTier.legendary,
        max_hp=340,
        moves=[
            MoveData("Ancient Power", MoveType.attack, 45, "A prehistoric energy blast."),
            MoveData("Aura Sphere", MoveType.power, 80, "Focused life energy."),
            MoveData("Transform", MoveType.defense, 30, "Copies opponent abilities."),
        ],
        value=2500,
        shop_price=0.15,
    ),
}


def get_card(card_id: str) -> CardDefinition:
    """Return a card by id. Raises KeyError if not found."""
    if card_id not in CARD_CATALOG:
        raise KeyError(f"Unknown card: {card_id}")
    return CARD_CATALOG[card_id]


def list_cards() -> list[CardDefinition]:
    return list(CARD_CATALOG.values())


def get_daily_claimable_cards() -> list[CardDefinition]:
    return [c for c in CARD_CATALOG.values() if c.daily_claimable]


def get_shop_cards() -> list[CardDefinition]:
    return [c for c in CARD_CATALOG.values() if c.shop_price > 0]
