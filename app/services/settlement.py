"""Post-match settlement: the winner's client takes the loser's staked card.

Both clients run settlement when they reach the result screen; only the
winning client's branch writes. Each instance settles at most once, and the
room_settlements row keyed by match id stops a second attempt for the same
match (for instance after a page reload) from transferring again.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.room import Winner
from app.models.room_settlement import RoomSettlement
from app.schemas.room import RoomSnapshot
from app.services.inventory_service import find_owned_card, normalize_address, reassign_owner
from app.services.room_store import RoomStore

logger = logging.getLogger(__name__)


class PostMatchSettlement:
    def __init__(
        self,
        store: RoomStore,
        session_factory: async_sessionmaker[AsyncSession],
        is_player1: bool,
    ) -> None:
        self.store = store
        self.session_factory = session_factory
        self.is_player1 = is_player1
        self.done = False

    def _won(self, room: RoomSnapshot) -> bool:
        if room.winner == Winner.player1:
            return self.is_player1
        if room.winner == Winner.player2:
            return not self.is_player1
        return False

    async def settle(self, room_id: str) -> bool:
        """Transfer the loser's card if this client won. Returns True on transfer.

        Failures are logged and swallowed; settlement is never retried.
        """
        if self.done:
            return False
        self.done = True

        try:
            return await self._settle(room_id)
        except Exception:
            logger.exception("Settlement failed for room %s", room_id)
            return False

    async def _settle(self, room_id: str) -> bool:
        # The local mirror may be stale; go back to the record.
        room = await self.store.read_room(room_id)
        if room is None:
            logger.warning("Room %s vanished before settlement", room_id)
            return False
        if room.winner is None or room.winner == Winner.draw:
            logger.info("Room %s ended without a winner; nothing to settle", room_id)
            return False
        if not self._won(room):
            return False

        if room.winner == Winner.player1:
            winner_address, loser_address = room.player1_address, room.player2_address
            loser_card = room.player2_card
        else:
            winner_address, loser_address = room.player2_address, room.player1_address
            loser_card = room.player1_card
        if loser_address is None or loser_card is None:
            logger.warning("Room %s has no loser to settle against", room_id)
            return False

        async with self.session_factory() as db:
            owned = await find_owned_card(db, loser_address, loser_card.id)
            db.add(RoomSettlement(
                match_id=room.match_id,
                room_id=room.id,
                winner_address=normalize_address(winner_address),
                owned_card_id=owned.id if owned else None,
            ))
            try:
                await db.flush()
            except IntegrityError:
                await db.rollback()
                logger.info("Match %s in room %s was already settled", room.match_id, room_id)
                return False

            if owned is None:
                await db.commit()
                logger.warning(
                    "Loser %s holds no %s card; room %s settled without transfer",
                    loser_address, loser_card.id, room_id,
                )
                return False

            await reassign_owner(db, owned.id, loser_address, winner_address)
            await db.commit()

        logger.info(
            "Room %s: card %s (%s) transferred from %s to %s",
            room_id, owned.id, loser_card.id, loser_address, winner_address,
        )
        return True
