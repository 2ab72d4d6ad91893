"""Battle session: drives one client through JOIN -> SELECT_CARD -> WAITING/BATTLE -> RESULT.

Every action returns True when it went through. Failures never raise past the
action; they are appended to view.messages for the player to read.
"""

import logging
import random

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.data.cards import CardDefinition
from app.models.room import RoomStatus
from app.schemas.room import CardSnapshot
from app.services.inventory_service import normalize_address
from app.services.match_sync import MatchSynchronizer, MatchView, SessionPhase
from app.services.room_store import (
    RoomExistsError,
    RoomStore,
    RoomStoreError,
    generate_room_code,
    normalize_room_code,
)
from app.services.settlement import PostMatchSettlement

logger = logging.getLogger(__name__)


class BattleSession:
    def __init__(
        self,
        store: RoomStore,
        address: str,
        session_factory: async_sessionmaker[AsyncSession],
        rng: random.Random | None = None,
    ) -> None:
        self.store = store
        self.address = normalize_address(address)
        self.session_factory = session_factory
        self.rng = rng
        self.card: CardSnapshot | None = None
        self.settlement: PostMatchSettlement | None = None
        self.sync = MatchSynchronizer(store, MatchView(), on_result=self._settle, rng=rng)

    @property
    def view(self) -> MatchView:
        return self.sync.view

    @property
    def phase(self) -> SessionPhase:
        return self.sync.view.phase

    def _fail(self, message: str) -> bool:
        self.view.messages.append(message)
        return False

    def _require_phase(self, *phases: SessionPhase) -> bool:
        if self.phase in phases:
            return True
        return self._fail(f"Action not available during {self.phase.value}")

    async def _settle(self, room_id: str) -> None:
        if self.settlement is not None:
            await self.settlement.settle(room_id)

    # -----------------------------------------------------------------------
    # JOIN -> SELECT_CARD
    # -----------------------------------------------------------------------

    def enter_room(self, code: str | None = None) -> bool:
        """Pick a room code; a fresh one is drawn when none is typed."""
        if not self._require_phase(SessionPhase.join):
            return False
        try:
            room_id = normalize_room_code(code) if code else generate_room_code(self.rng)
        except ValueError as exc:
            return self._fail(str(exc))
        self.view.room_id = room_id
        self.view.phase = SessionPhase.select_card
        return True

    # -----------------------------------------------------------------------
    # SELECT_CARD -> WAITING (player1) | BATTLE (player2)
    # -----------------------------------------------------------------------

    async def select_card(self, card: CardDefinition | CardSnapshot) -> bool:
        if not self._require_phase(SessionPhase.select_card):
            return False
        snapshot = card if isinstance(card, CardSnapshot) else CardSnapshot(**card.snapshot())
        room_id = self.view.room_id

        try:
            existing = await self.store.read_room(room_id)
            if existing is None:
                return await self._create_as_player1(room_id, snapshot)
            if existing.status != RoomStatus.waiting or existing.player2_address is not None:
                return self._fail(f"Room {room_id} is already in use")
            if existing.player1_address == self.address:
                return self._fail("You cannot battle yourself")
            return await self._join_as_player2(room_id, snapshot)
        except RoomStoreError as exc:
            self.sync.detach()
            logger.error("Could not enter room %s: %s", room_id, exc)
            return self._fail(f"Could not enter room: {exc}")

    async def _create_as_player1(self, room_id: str, card: CardSnapshot) -> bool:
        self.view.is_player1 = True
        self.card = card
        self.settlement = PostMatchSettlement(self.store, self.session_factory, is_player1=True)
        self.sync.attach()
        try:
            await self.store.create_room(room_id, {
                "player1_address": self.address,
                "player1_card": card,
                "player1_hp": card.max_hp,
                "player1_shield": 0,
                "action_log": [],
                "status": RoomStatus.waiting,
            })
        except RoomExistsError:
            # Another client grabbed the code in between; no automatic retry.
            self.sync.detach()
            return self._fail(f"Room {room_id} already exists")

        self.view.my_hp = card.max_hp
        if self.view.phase == SessionPhase.select_card:
            self.view.phase = SessionPhase.waiting
        return True

    async def _join_as_player2(self, room_id: str, card: CardSnapshot) -> bool:
        self.view.is_player1 = False
        self.card = card
        self.settlement = PostMatchSettlement(self.store, self.session_factory, is_player1=False)
        self.sync.attach()
        await self.store.update_room(room_id, {
            "player2_address": self.address,
            "player2_card": card,
            "player2_hp": card.max_hp,
            "player2_shield": 0,
            "status": RoomStatus.battle,
        })
        if self.view.phase != SessionPhase.result:
            self.view.phase = SessionPhase.battle
        logger.info("Wallet %s joined room %s", self.address, room_id)
        return True

    # -----------------------------------------------------------------------
    # BATTLE
    # -----------------------------------------------------------------------

    async def submit_move(self, move_name: str) -> bool:
        """Write this client's move for the round. Accepted once per round."""
        if not self._require_phase(SessionPhase.battle):
            return False
        if self.view.my_move_submitted:
            return self._fail("Move already submitted for this round")
        move = self.card.get_move(move_name) if self.card else None
        if move is None:
            return self._fail(f"Unknown move: {move_name}")

        slot = "player1_move" if self.view.is_player1 else "player2_move"
        self.view.my_move_submitted = True
        try:
            await self.store.update_room(self.view.room_id, {slot: move})
        except RoomStoreError as exc:
            # The move never landed, so the player may pick again.
            self.view.my_move_submitted = False
            logger.error("Could not submit move in room %s: %s", self.view.room_id, exc)
            return self._fail(f"Could not submit move: {exc}")
        logger.debug("Room %s: %s submitted %s", self.view.room_id, self.address, move.name)
        return True

    # -----------------------------------------------------------------------
    # RESULT -> JOIN
    # -----------------------------------------------------------------------

    async def play_again(self) -> bool:
        """Delete the finished room and start over from the join screen."""
        if not self._require_phase(SessionPhase.result):
            return False
        room_id = self.view.room_id
        try:
            await self.store.delete_room(room_id)
        except RoomStoreError as exc:
            logger.error("Could not delete room %s: %s", room_id, exc)
            return self._fail(f"Could not leave room: {exc}")
        self.sync.detach()
        self.card = None
        self.settlement = None
        self.sync.view = MatchView()
        return True

    def leave(self) -> None:
        """Stop listening. Writes already in flight still complete."""
        self.sync.detach()
