"""Match synchronizer: mirrors the shared room record into one client's view.

There is no game server. Both clients write their own move slot; whichever
client joined as player1 resolves the round once both slots are filled and
writes the outcome back. player2 never resolves, so a round is computed at
most once even though the store offers no compare-and-swap.

reconcile() is pure and idempotent: replaying a snapshot, or receiving
snapshots out of order, never duplicates log lines or moves the phase
backwards out of RESULT.
"""

from __future__ import annotations

import enum
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace

from app.models.room import RoomStatus, Winner
from app.schemas.room import RoomSnapshot
from app.services.combat_resolver import resolve_round
from app.services.room_store import RoomStore, RoomStoreError

logger = logging.getLogger(__name__)


class SessionPhase(str, enum.Enum):
    join = "join"
    select_card = "select_card"
    waiting = "waiting"
    battle = "battle"
    result = "result"


class Outcome(str, enum.Enum):
    me = "me"
    opponent = "opponent"
    draw = "draw"


@dataclass
class MatchView:
    """Everything one client knows about its match."""

    phase: SessionPhase = SessionPhase.join
    room_id: str | None = None
    is_player1: bool = False
    my_hp: int = 0
    opponent_hp: int | None = None  # None until an opponent has joined
    my_shield: int = 0
    opponent_shield: int = 0
    my_move_submitted: bool = False
    opponent_move_submitted: bool = False
    resolution_in_flight: bool = False
    # Length of action_log in the last snapshot this client resolved from.
    resolved_log_length: int = -1
    outcome: Outcome | None = None
    action_log: list[str] = field(default_factory=list)
    # Local-only notices (store failures etc.), never written to the room.
    messages: list[str] = field(default_factory=list)


def map_outcome(winner: Winner, is_player1: bool) -> Outcome:
    if winner == Winner.draw:
        return Outcome.draw
    i_won = (winner == Winner.player1) == is_player1
    return Outcome.me if i_won else Outcome.opponent


def reconcile(snapshot: RoomSnapshot, view: MatchView) -> MatchView:
    """Fold a room snapshot into the local view and return the new view.

    The action log only grows within a match, so a snapshot with a shorter log
    than the one already mirrored is stale and leaves the view untouched. The
    same goes for a snapshot without a winner once the view is in RESULT.
    """
    if len(snapshot.action_log) < len(view.action_log):
        return view
    if view.phase == SessionPhase.result and snapshot.winner is None:
        return view

    p1 = view.is_player1
    phase = view.phase

    both_cards = snapshot.player1_card is not None and snapshot.player2_card is not None
    if both_cards and snapshot.status == RoomStatus.battle and phase != SessionPhase.result:
        phase = SessionPhase.battle

    if snapshot.player2_hp is None:
        # No opponent yet: keep whatever the view already shows.
        my_hp, opponent_hp = view.my_hp, view.opponent_hp
        if p1:
            my_hp = snapshot.player1_hp
        else:
            opponent_hp = snapshot.player1_hp
    elif p1:
        my_hp, opponent_hp = snapshot.player1_hp, snapshot.player2_hp
    else:
        my_hp, opponent_hp = snapshot.player2_hp, snapshot.player1_hp
    my_shield, opponent_shield = (
        (snapshot.player1_shield, snapshot.player2_shield)
        if p1
        else (snapshot.player2_shield, snapshot.player1_shield)
    )

    outcome = view.outcome
    if snapshot.winner is not None:
        outcome = map_outcome(snapshot.winner, p1)
        phase = SessionPhase.result

    opponent_move = snapshot.player2_move if p1 else snapshot.player1_move
    my_move_submitted = view.my_move_submitted
    opponent_move_submitted = opponent_move is not None
    resolution_in_flight = view.resolution_in_flight

    both_clear = snapshot.player1_move is None and snapshot.player2_move is None
    if both_clear and view.my_move_submitted:
        # Round fully resolved; a new one may begin.
        my_move_submitted = False
        opponent_move_submitted = False
        resolution_in_flight = False

    return replace(
        view,
        phase=phase,
        my_hp=my_hp,
        opponent_hp=opponent_hp,
        my_shield=my_shield,
        opponent_shield=opponent_shield,
        outcome=outcome,
        my_move_submitted=my_move_submitted,
        opponent_move_submitted=opponent_move_submitted,
        resolution_in_flight=resolution_in_flight,
        action_log=list(snapshot.action_log),
    )


def needs_resolution(snapshot: RoomSnapshot, view: MatchView) -> bool:
    """True when this client is elected to resolve the current round.

    player1 only ever sees both moves of a live round after submitting its
    own, and each resolution appends to the log, so a redelivered snapshot of
    an already resolved round fails one of the last two checks.
    """
    return (
        snapshot.player1_move is not None
        and snapshot.player2_move is not None
        and view.is_player1
        and not view.resolution_in_flight
        and view.my_move_submitted
        and len(snapshot.action_log) > view.resolved_log_length
        and snapshot.winner is None
        and snapshot.status == RoomStatus.battle
    )


class MatchSynchronizer:
    """Per-client glue between the room store, the view and the resolver."""

    def __init__(
        self,
        store: RoomStore,
        view: MatchView,
        on_result: Callable[[str], Awaitable[object]] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.view = view
        self.on_result = on_result
        self.rng = rng
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self) -> None:
        if self._unsubscribe is None and self.view.room_id:
            self._unsubscribe = self.store.subscribe_room(self.view.room_id, self.on_room_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def on_room_change(self, snapshot: RoomSnapshot) -> None:
        if snapshot.id != self.view.room_id:
            return

        self.view = reconcile(snapshot, self.view)

        if needs_resolution(snapshot, self.view):
            self.view.resolution_in_flight = True
            self.view.resolved_log_length = len(snapshot.action_log)
            await self._resolve(snapshot)

        if self.view.phase == SessionPhase.result and self.on_result is not None:
            await self.on_result(snapshot.id)

    async def _resolve(self, snapshot: RoomSnapshot) -> None:
        outcome = resolve_round(
            snapshot.player1_move,
            snapshot.player2_move,
            snapshot.player1_card,
            snapshot.player2_card,
            snapshot.player1_hp,
            snapshot.player2_hp,
            snapshot.player1_shield,
            snapshot.player2_shield,
            rng=self.rng,
        )
        fields: dict[str, object] = {
            "player1_hp": outcome.p1_hp,
            "player2_hp": outcome.p2_hp,
            "player1_shield": outcome.p1_shield,
            "player2_shield": outcome.p2_shield,
            "player1_move": None,
            "player2_move": None,
            "action_log": snapshot.action_log + outcome.log_entries,
        }
        if outcome.winner is not None:
            fields["winner"] = outcome.winner
            fields["status"] = RoomStatus.finished

        try:
            await self.store.update_room(snapshot.id, fields)
        except RoomStoreError as exc:
            # The guard stays up; nothing else resolves this round.
            logger.error("Failed to write round result for room %s: %s", snapshot.id, exc)
            self.view.messages.append(f"Failed to resolve round: {exc}")
            return

        logger.info(
            "Room %s round resolved (winner=%s)",
            snapshot.id,
            outcome.winner.value if outcome.winner else None,
        )
