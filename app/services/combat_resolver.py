"""Combat resolver: pure functions computing the outcome of battle moves.

Move rules:
  - defense moves whose description carries a heal marker restore the
    attacker's HP (clamped to the card's max HP).
  - other defense moves SET the attacker's shield to the move value.
  - attack/power moves roll damage in [0.8, 1.2) x value, floored; a shield
    soaks damage first and breaks when the damage reaches it.

A round applies player1's move first, then player2's move against the
post-player1 state. The only randomness is the damage roll, drawn from an
injectable random.Random so tests can pin it.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field

from app.config import settings
from app.models.room import Winner
from app.schemas.room import CardSnapshot, Move

HEAL_MARKERS = ("heal", "recover")


@dataclass
class MoveResult:
    p1_hp: int
    p2_hp: int
    p1_shield: int
    p2_shield: int
    log_entry: str


@dataclass
class RoundOutcome:
    p1_hp: int
    p2_hp: int
    p1_shield: int
    p2_shield: int
    log_entries: list[str] = field(default_factory=list)
    winner: Winner | None = None


def is_heal_move(move: Move) -> bool:
    description = move.description.lower()
    return move.type == "defense" and any(marker in description for marker in HEAL_MARKERS)


def roll_damage(base_value: int, rng: random.Random | None = None) -> int:
    """Raw damage before shields: floor(value * (0.8 + random() * 0.4))."""
    _rand = rng or random
    multiplier = settings.damage_min_multiplier + _rand.random() * settings.damage_multiplier_spread
    return math.floor(base_value * multiplier)


def absorb_with_shield(damage: int, shield: int) -> tuple[int, int, str | None]:
    """Run raw damage through a shield.

    Returns (hp_damage, shield_after, note) where note is "Shield broke!",
    "Blocked." or None when there was no shield.
    """
    if shield <= 0:
        return damage, 0, None
    if damage >= shield:
        return damage - shield, 0, "Shield broke!"
    return 0, shield - damage, "Blocked."


def apply_move(
    move: Move,
    attacker_card: CardSnapshot,
    is_attacker_player1: bool,
    p1_hp: int,
    p2_hp: int,
    p1_shield: int,
    p2_shield: int,
    rng: random.Random | None = None,
) -> MoveResult:
    """Apply a single move by one player and return the new HP/shield state."""
    if is_attacker_player1:
        my_hp, my_shield, their_hp, their_shield = p1_hp, p1_shield, p2_hp, p2_shield
    else:
        my_hp, my_shield, their_hp, their_shield = p2_hp, p2_shield, p1_hp, p1_shield

    prefix = f"{attacker_card.name} used {move.name}!"

    if move.type == "defense":
        if is_heal_move(move):
            my_hp = min(attacker_card.max_hp, my_hp + move.value)
            log_entry = f"{prefix} Recovered HP."
        else:
            my_shield = move.value
            log_entry = f"{prefix} Gained Shield."
    else:
        damage = roll_damage(move.value, rng)
        hp_damage, their_shield, note = absorb_with_shield(damage, their_shield)
        their_hp = max(0, their_hp - hp_damage)
        if note == "Blocked.":
            log_entry = f"{prefix} Blocked."
        elif note == "Shield broke!":
            log_entry = f"{prefix} Shield broke!"
            if hp_damage > 0:
                log_entry += f" Dealt {hp_damage} DMG."
        else:
            log_entry = f"{prefix} Dealt {hp_damage} DMG."

    if is_attacker_player1:
        return MoveResult(my_hp, their_hp, my_shield, their_shield, log_entry)
    return MoveResult(their_hp, my_hp, their_shield, my_shield, log_entry)


def classify_winner(p1_hp: int, p2_hp: int) -> Winner | None:
    """Return the winner once a side is knocked out, or None while both stand."""
    p1_down = p1_hp <= 0
    p2_down = p2_hp <= 0
    if p1_down and p2_down:
        return Winner.draw
    if p1_down:
        return Winner.player2
    if p2_down:
        return Winner.player1
    return None


def resolve_round(
    p1_move: Move,
    p2_move: Move,
    p1_card: CardSnapshot,
    p2_card: CardSnapshot,
    p1_hp: int,
    p2_hp: int,
    p1_shield: int,
    p2_shield: int,
    rng: random.Random | None = None,
) -> RoundOutcome:
    """Resolve both submitted moves, player1 first, regardless of submission order."""
    first = apply_move(p1_move, p1_card, True, p1_hp, p2_hp, p1_shield, p2_shield, rng)
    second = apply_move(
        p2_move, p2_card, False,
        first.p1_hp, first.p2_hp, first.p1_shield, first.p2_shield,
        rng,
    )
    return RoundOutcome(
        p1_hp=second.p1_hp,
        p2_hp=second.p2_hp,
        p1_shield=second.p1_shield,
        p2_shield=second.p2_shield,
        log_entries=[first.log_entry, second.log_entry],
        winner=classify_winner(second.p1_hp, second.p2_hp),
    )
