from datetime import date, datetime
from typing import Optional, List
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import PermissionDenied, ValidationError
from ..responses import success
from ..security import Principal, get_principal, require_admin
from ..services import booking_lifecycle as lifecycle

router = APIRouter(prefix="/bookings", tags=["bookings"])

# ==== Schemas ====

class BookingOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    room_id: int
    payment_id: int
    name: str
    email: str
    phone_number: str
    start_date: date
    end_date: date
    price: int
    payment: str
    status: str
    room_name: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class BookingDetailOut(BookingOut):
    user_name: Optional[str] = None
    user_email: Optional[str] = None

# Every field is optional here; the lifecycle service reports what is missing
class BookingCreateIn(BaseModel):
    room_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    price: Optional[int] = None
    payment: Optional[str] = None
    status: Optional[str] = None

class BookingStatusIn(BaseModel):
    status: Optional[str] = None

# ==== Helpers ====

def _require_id(booking_id: Optional[int]) -> int:
    if booking_id is None:
        raise ValidationError("Booking ID is required")
    return booking_id

def _ensure_can_view(principal: Principal, user_id: Optional[int]):
    if principal.is_admin:
        return
    if principal.user_id is None or principal.user_id != user_id:
        raise PermissionDenied("You can only view your own bookings")

def _booking_out(booking) -> dict:
    return BookingOut.model_validate(booking).model_dump()

def _booking_detail_out(booking) -> dict:
    return BookingDetailOut.model_validate(booking).model_dump()

# ==== Endpoints ====

@router.get("")
def bookings_get(action: str = "", id: Optional[int] = None, user_id: Optional[int] = None, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    if action == "get_booking" and id is not None:
        booking = lifecycle.get_booking(db, id)
        _ensure_can_view(principal, booking.user_id)
        return success(_booking_detail_out(booking))
    if action == "user_bookings" and user_id is not None:
        _ensure_can_view(principal, user_id)
        return success([_booking_out(b) for b in lifecycle.list_user_bookings(db, user_id)])
    # Listing everything is an admin view
    require_admin(principal)
    return success([_booking_detail_out(b) for b in lifecycle.list_bookings(db)])

@router.post("")
def bookings_create(payload: BookingCreateIn, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    booking = lifecycle.create_booking(db, principal, payload.model_dump())
    return success(
        {"message": "Booking created successfully", "booking_id": booking.id, "payment_id": booking.payment_id},
    )

@router.put("")
def bookings_update(payload: BookingStatusIn, id: Optional[int] = None, principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    lifecycle.update_booking_status(db, _require_id(id), payload.status, principal)
    return success({"message": "Booking updated successfully"})

@router.delete("")
def bookings_delete(id: Optional[int] = None, principal: Principal = Depends(require_admin), db: Session = Depends(get_db)):
    lifecycle.delete_booking(db, _require_id(id), principal)
    return success({"message": "Booking deleted successfully"})
