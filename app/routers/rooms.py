from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.room import RoomSnapshot
from app.services.room_store import get_room, normalize_room_code

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("/{code}", response_model=RoomSnapshot)
async def get_room_snapshot(code: str, db: AsyncSession = Depends(get_db)):
    """Current state of a battle room, e.g. for a spectator or a reloaded client."""
    try:
        room_id = normalize_room_code(code)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    room = await get_room(db, room_id)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return RoomSnapshot.model_validate(room)
