import logging
import time

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db import commit_or_raise
from ..errors import NotFoundError, ValidationError
from ..models import Booking, Room, RoomStatus

logger = logging.getLogger(__name__)

ROOM_REQUIRED_FIELDS = ("room_name", "price")


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


def normalize_room_status(value) -> RoomStatus:
    """Unknown or missing statuses fall back to ``available``."""
    try:
        return RoomStatus(str(value).strip().lower())
    except ValueError:
        return RoomStatus.AVAILABLE


def prepare_room_data(data: dict) -> dict:
    for field in ROOM_REQUIRED_FIELDS:
        if _is_blank(data.get(field)):
            raise ValidationError(f"{field[:1].upper()}{field[1:]} is required")
    try:
        price = int(data["price"])
    except (TypeError, ValueError):
        raise ValidationError("Price must be a whole number")
    if price < 0:
        raise ValidationError("Price cannot be negative")
    return {
        "room_name": str(data["room_name"]).strip(),
        "price": price,
        "description": str(data.get("description") or "").strip(),
        "status": normalize_room_status(data.get("status")),
    }


def list_rooms(db: Session) -> list[Room]:
    return db.query(Room).order_by(Room.room_name.asc()).all()


def get_room(db: Session, room_id: int) -> Room:
    room = db.get(Room, room_id)
    if not room:
        raise NotFoundError("Room not found")
    return room


def create_room(db: Session, data: dict) -> Room:
    room = Room(**prepare_room_data(data))
    db.add(room)
    commit_or_raise(db, "Room creation")
    db.refresh(room)
    logger.info("Room %s created (%s)", room.id, room.room_name)
    return room


def update_room(db: Session, room_id: int, data: dict) -> Room:
    room = get_room(db, room_id)
    for key, value in prepare_room_data(data).items():
        setattr(room, key, value)
    commit_or_raise(db, "Room update")
    db.refresh(room)
    return room


def room_has_bookings(db: Session, room_id: int) -> bool:
    count = db.query(func.count(Booking.id)).filter(Booking.room_id == room_id).scalar()
    return bool(count)


def delete_room(db: Session, room_id: int) -> str:
    """
    Deletes a room. Rooms referenced by bookings are kept for history:
    they are marked unavailable and renamed instead.
    Returns ``"soft"`` or ``"hard"``.
    """
    room = get_room(db, room_id)
    if room_has_bookings(db, room_id):
        room.status = RoomStatus.UNAVAILABLE
        room.room_name = f"{room.room_name} (Deleted {int(time.time())})"
        commit_or_raise(db, "Room deletion")
        logger.info("Room %s soft-deleted; bookings reference it", room_id)
        return "soft"
    db.delete(room)
    commit_or_raise(db, "Room deletion")
    logger.info("Room %s deleted", room_id)
    return "hard"
