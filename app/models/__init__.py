from app.models.base import Base  # noqa: F401
from app.models.owned_card import AcquiredVia, OwnedCard  # noqa: F401
from app.models.room import Room, RoomStatus, Winner  # noqa: F401
from app.models.room_settlement import RoomSettlement  # noqa: F401
