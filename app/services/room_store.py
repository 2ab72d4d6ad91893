"""Room store: the shared record each match is synchronized through.

The module-level functions take an AsyncSession like the other services and
are also used by the HTTP router. RoomStore is the abstract interface the
battle clients talk to; SqlRoomStore implements it on top of a session
factory and publishes every write to a RoomEventBroker.
"""

import abc
import logging
import random
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.room import Room
from app.schemas.room import RoomSnapshot
from app.services.room_events import RoomEventBroker, RoomListener

logger = logging.getLogger(__name__)

ROOM_CODE_LENGTH = 4

ROOM_FIELDS = frozenset({
    "player1_address",
    "player2_address",
    "player1_card",
    "player2_card",
    "player1_hp",
    "player2_hp",
    "player1_shield",
    "player2_shield",
    "player1_move",
    "player2_move",
    "action_log",
    "status",
    "winner",
})


class RoomStoreError(Exception):
    """A room store read or write failed."""


class RoomExistsError(RoomStoreError):
    pass


class RoomNotFoundError(RoomStoreError):
    pass


# ---------------------------------------------------------------------------
# Room codes
# ---------------------------------------------------------------------------

def normalize_room_code(code: str) -> str:
    """Uppercase a user-entered code. Raises ValueError if it is not 4 printable chars."""
    normalized = (code or "").strip().upper()
    if len(normalized) != ROOM_CODE_LENGTH or not normalized.isprintable() or " " in normalized:
        raise ValueError(f"Room code must be {ROOM_CODE_LENGTH} characters")
    return normalized


def generate_room_code(rng: random.Random | None = None) -> str:
    _rand = rng or random
    return str(_rand.randint(1000, 9999))


# ---------------------------------------------------------------------------
# Session-level helpers
# ---------------------------------------------------------------------------

def _to_column_values(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - ROOM_FIELDS
    if unknown:
        raise ValueError(f"Unknown room fields: {', '.join(sorted(unknown))}")
    values: dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, BaseModel):
            value = value.model_dump()
        values[key] = value
    return values


async def get_room(db: AsyncSession, room_id: str) -> Room | None:
    result = await db.execute(select(Room).where(Room.id == room_id))
    return result.scalar_one_or_none()


async def insert_room(db: AsyncSession, room_id: str, fields: dict[str, Any]) -> Room:
    if await get_room(db, room_id) is not None:
        raise RoomExistsError(f"Room {room_id} already exists")
    room = Room(id=room_id, **_to_column_values(fields))
    db.add(room)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise RoomExistsError(f"Room {room_id} already exists") from exc
    await db.refresh(room)
    return room


async def merge_room(db: AsyncSession, room_id: str, fields: dict[str, Any]) -> Room:
    """Merge fields into the room. Last write wins; there is no version check."""
    room = await get_room(db, room_id)
    if room is None:
        raise RoomNotFoundError(f"Room {room_id} not found")
    for key, value in _to_column_values(fields).items():
        setattr(room, key, value)
    await db.commit()
    await db.refresh(room)
    return room


async def remove_room(db: AsyncSession, room_id: str) -> None:
    await db.execute(delete(Room).where(Room.id == room_id))
    await db.commit()


# ---------------------------------------------------------------------------
# Store interface
# ---------------------------------------------------------------------------

class RoomStore(abc.ABC):
    @abc.abstractmethod
    async def create_room(self, room_id: str, fields: dict[str, Any]) -> RoomSnapshot:
        """Insert a new room. Raises RoomExistsError if the code is taken."""

    @abc.abstractmethod
    async def update_room(self, room_id: str, fields: dict[str, Any]) -> RoomSnapshot:
        """Merge fields into an existing room."""

    @abc.abstractmethod
    async def read_room(self, room_id: str) -> RoomSnapshot | None:
        """Return the current snapshot, or None if the room does not exist."""

    @abc.abstractmethod
    async def delete_room(self, room_id: str) -> None:
        ...

    @abc.abstractmethod
    def subscribe_room(self, room_id: str, on_change: RoomListener) -> Callable[[], None]:
        """Call on_change with every new snapshot; returns an unsubscribe callable."""


class SqlRoomStore(RoomStore):
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        broker: RoomEventBroker | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.broker = broker or RoomEventBroker()

    async def create_room(self, room_id: str, fields: dict[str, Any]) -> RoomSnapshot:
        try:
            async with self.session_factory() as db:
                room = await insert_room(db, room_id, fields)
                snapshot = RoomSnapshot.model_validate(room)
        except SQLAlchemyError as exc:
            raise RoomStoreError(f"Could not create room {room_id}: {exc}") from exc
        logger.info("Room %s created by %s", room_id, snapshot.player1_address)
        await self.broker.publish(snapshot)
        return snapshot

    async def update_room(self, room_id: str, fields: dict[str, Any]) -> RoomSnapshot:
        try:
            async with self.session_factory() as db:
                room = await merge_room(db, room_id, fields)
                snapshot = RoomSnapshot.model_validate(room)
        except SQLAlchemyError as exc:
            raise RoomStoreError(f"Could not update room {room_id}: {exc}") from exc
        await self.broker.publish(snapshot)
        return snapshot

    async def read_room(self, room_id: str) -> RoomSnapshot | None:
        try:
            async with self.session_factory() as db:
                room = await get_room(db, room_id)
                return RoomSnapshot.model_validate(room) if room else None
        except SQLAlchemyError as exc:
            raise RoomStoreError(f"Could not read room {room_id}: {exc}") from exc

    async def delete_room(self, room_id: str) -> None:
        try:
            async with self.session_factory() as db:
                await remove_room(db, room_id)
        except SQLAlchemyError as exc:
            raise RoomStoreError(f"Could not delete room {room_id}: {exc}") from exc
        logger.info("Room %s deleted", room_id)

    def subscribe_room(self, room_id: str, on_change: RoomListener) -> Callable[[], None]:
        return self.broker.subscribe(room_id, on_change)
