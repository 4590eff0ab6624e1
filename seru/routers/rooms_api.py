from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import ValidationError
from ..responses import success
from ..security import Principal, require_admin
from ..services import room_catalog

router = APIRouter(prefix="/rooms", tags=["rooms"])

class RoomOut(BaseModel):
    id: int
    room_name: str
    price: int
    description: str
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RoomIn(BaseModel):
    room_name: Optional[str] = None
    price: Optional[int] = None
    description: Optional[str] = None
    status: Optional[str] = None

def _require_id(room_id: Optional[int]) -> int:
    if room_id is None:
        raise ValidationError("Room ID is required")
    return room_id

@router.get("")
def rooms_get(action: str = "", id: Optional[int] = None, db: Session = Depends(get_db)):
    if action == "get_room" and id is not None:
        room = room_catalog.get_room(db, id)
        return success(RoomOut.model_validate(room).model_dump())
    return success([RoomOut.model_validate(r).model_dump() for r in room_catalog.list_rooms(db)])

@router.post("")
def rooms_create(payload: RoomIn, admin: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    room = room_catalog.create_room(db, payload.model_dump())
    return success({"message": "Room created successfully", "room_id": room.id})

@router.put("")
def rooms_update(payload: RoomIn, id: Optional[int] = None, admin: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    room_catalog.update_room(db, _require_id(id), payload.model_dump())
    return success({"message": "Room updated successfully"})

@router.delete("")
def rooms_delete(id: Optional[int] = None, admin: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    mode = room_catalog.delete_room(db, _require_id(id))
    message = "Room deleted successfully" if mode == "hard" else "Room has bookings; marked unavailable instead"
    return success({"message": message, "mode": mode})
