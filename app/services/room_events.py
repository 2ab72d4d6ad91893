"""In-process change feed for room records.

Each subscriber is an async callable receiving the latest RoomSnapshot.
Delivery is best-effort: a failing subscriber is logged and skipped so the
remaining subscribers still see the update.

Snapshots published from inside a listener (the resolving client writes the
round result while handling the move that completed it) are queued and
delivered after the current snapshot has reached every listener, so all
listeners observe writes in the order they were made.
"""

import logging
from collections import deque
from collections.abc import Awaitable, Callable

from app.schemas.room import RoomSnapshot

logger = logging.getLogger(__name__)

RoomListener = Callable[[RoomSnapshot], Awaitable[None]]


class RoomEventBroker:
    def __init__(self) -> None:
        self._listeners: dict[str, list[RoomListener]] = {}
        self._pending: deque[RoomSnapshot] = deque()
        self._dispatching = False

    def subscribe(self, room_id: str, listener: RoomListener) -> Callable[[], None]:
        """Register a listener for one room and return its unsubscribe callable."""
        self._listeners.setdefault(room_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(room_id, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(room_id, None)

        return unsubscribe

    def listener_count(self, room_id: str) -> int:
        return len(self._listeners.get(room_id, []))

    async def publish(self, snapshot: RoomSnapshot) -> None:
        self._pending.append(snapshot)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending:
                await self._deliver(self._pending.popleft())
        finally:
            self._dispatching = False

    async def _deliver(self, snapshot: RoomSnapshot) -> None:
        # Copy: listeners may unsubscribe while being notified.
        for listener in list(self._listeners.get(snapshot.id, [])):
            try:
                await listener(snapshot)
            except Exception:
                logger.exception("Room listener failed for room %s", snapshot.id)
