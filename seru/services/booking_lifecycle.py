"""
Booking lifecycle: creation, status transitions and deletion.

A booking is always written together with its payment record. The payment
is inserted first so the booking can reference it, and both inserts share
one transaction. Payment status is never set on its own; it follows the
booking status through ``payment_status_for``.
"""
import logging
import re
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..db import commit_or_raise
from ..errors import (
    AuthenticationRequired,
    ConflictError,
    NotFoundError,
    PermissionDenied,
    PersistenceError,
    SeruError,
    ValidationError,
)
from ..models import Booking, BookingStatus, Payment, PaymentStatus, Room, RoomStatus
from ..security import Principal
from .booking_lock import room_booking_lock

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("room_id", "name", "email", "phone_number", "start_date", "end_date", "price")

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_INITIAL_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)

_PAYMENT_STATUS_FOR = {
    BookingStatus.CONFIRMED: PaymentStatus.COMPLETED,
    BookingStatus.CANCELLED: PaymentStatus.REFUNDED,
}


def payment_status_for(status: BookingStatus) -> PaymentStatus:
    return _PAYMENT_STATUS_FOR.get(status, PaymentStatus.PENDING)


def _is_blank(value) -> bool:
    return value is None or not str(value).strip()


def _field_label(field: str) -> str:
    return field[:1].upper() + field[1:]


def validate_required(data: dict, fields=REQUIRED_FIELDS) -> None:
    for field in fields:
        if _is_blank(data.get(field)):
            raise ValidationError(f"{_field_label(field)} is required")


def parse_booking_dates(start_value, end_value) -> tuple[date, date]:
    """
    Parses ``YYYY-MM-DD`` strings. The end date must be strictly after the
    start date, so the shortest booking spans two calendar dates.
    """
    start_raw, end_raw = str(start_value).strip(), str(end_value).strip()
    if not _ISO_DATE.match(start_raw) or not _ISO_DATE.match(end_raw):
        raise ValidationError("Invalid date format. Please use YYYY-MM-DD format.")
    try:
        start, end = date.fromisoformat(start_raw), date.fromisoformat(end_raw)
    except ValueError:
        raise ValidationError("Invalid dates. End date must be after start date.")
    if end <= start:
        raise ValidationError("Invalid dates. End date must be after start date.")
    return start, end


def parse_status(value) -> BookingStatus:
    if _is_blank(value):
        raise ValidationError("Status is required")
    try:
        return BookingStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError("Invalid booking status. Only pending, confirmed, or cancelled are allowed.")


def booking_days(start: date, end: date) -> int:
    """Billable days between two dates, as the booking wizard charges them."""
    return max((end - start).days, 1)


def _as_int(value, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{_field_label(field)} must be a whole number")


def find_overlapping_bookings(db: Session, room_id: int, start: date, end: date) -> list[Booking]:
    """Non-cancelled bookings of the room whose inclusive date range meets [start, end]."""
    return db.query(Booking).filter(
        Booking.room_id == room_id,
        Booking.status != BookingStatus.CANCELLED,
        Booking.start_date <= end,
        Booking.end_date >= start,
    ).all()


def create_booking(db: Session, principal: Principal, data: dict) -> Booking:
    """
    Creates a booking and its pending payment.

    Users always get a ``confirmed`` booking whatever status they submit.
    An admin without a user session books on behalf of a walk-in guest: the
    booking has no user and may start as ``pending`` or ``confirmed``.
    """
    validate_required(data)
    start, end = parse_booking_dates(data["start_date"], data["end_date"])

    if principal.user_id is not None:
        user_id = principal.user_id
        status = BookingStatus.CONFIRMED
    elif principal.is_admin:
        user_id = None
        status = BookingStatus.CONFIRMED if _is_blank(data.get("status")) else parse_status(data["status"])
        if status not in _INITIAL_STATUSES:
            raise ValidationError("New bookings can only start as pending or confirmed")
    else:
        raise AuthenticationRequired("User must be logged in to create a booking")

    room_id = _as_int(data["room_id"], "room_id")
    price = _as_int(data["price"], "price")
    if price <= 0:
        raise ValidationError("Price must be greater than zero")

    method = str(data.get("payment") or "pending").strip() or "pending"
    with room_booking_lock(room_id):
        try:
            booking = _insert_booking(db, data, user_id, room_id, start, end, price, method, status)
        except SeruError:
            # Ends the transaction so the room row lock is released
            db.rollback()
            raise

    db.refresh(booking)
    logger.info("Booking %s created for room %s (%s to %s, payment %s)", booking.id, room_id, start, end, booking.payment_id)
    return booking


def _insert_booking(db: Session, data: dict, user_id, room_id: int, start: date, end: date, price: int, method: str, status: BookingStatus) -> Booking:
    """Room checks, overlap check and both inserts, all in one transaction."""
    # Locks the room row until commit on databases that support it
    room = db.query(Room).filter(Room.id == room_id).with_for_update().one_or_none()
    if not room:
        raise NotFoundError("Room not found")
    if room.status != RoomStatus.AVAILABLE:
        raise ConflictError("This room is not available for booking")

    if settings.ENFORCE_SERVER_PRICE:
        expected = room.price * booking_days(start, end)
        if price != expected:
            raise ValidationError(f"Price mismatch: expected {expected} for the selected dates")

    if settings.PREVENT_DOUBLE_BOOKING and find_overlapping_bookings(db, room_id, start, end):
        raise ConflictError("Room is already booked for the selected dates")

    payment = Payment(price=price, payment_method=method, status=PaymentStatus.PENDING)
    try:
        db.add(payment)
        db.flush()
        booking = Booking(
            user_id=user_id,
            room_id=room_id,
            payment_id=payment.id,
            name=str(data["name"]).strip(),
            email=str(data["email"]).strip(),
            phone_number=str(data["phone_number"]).strip(),
            start_date=start,
            end_date=end,
            price=price,
            payment=method,
            status=status,
        )
        db.add(booking)
        db.flush()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Booking creation failed for room %s: %s", room_id, e)
        raise PersistenceError("Booking creation failed") from e
    return booking


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def list_bookings(db: Session) -> list[Booking]:
    return db.query(Booking).order_by(Booking.created_at.desc(), Booking.id.desc()).all()


def list_user_bookings(db: Session, user_id: int) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .all()
    )


def update_booking_status(db: Session, booking_id: int, new_status, principal: Principal) -> Booking:
    """
    Moves a booking to ``new_status`` and its payment to the matching status.

    Owners may only cancel their own confirmed bookings. Every other
    transition is reserved to admins, and cancelled bookings stay cancelled.
    """
    booking = get_booking(db, booking_id)
    status = parse_status(new_status)

    if status == BookingStatus.CANCELLED:
        if principal.user_id is None or booking.user_id != principal.user_id:
            raise PermissionDenied("You can only cancel your own bookings")
        if booking.status != BookingStatus.CONFIRMED:
            raise PermissionDenied("You can only cancel confirmed bookings")
    else:
        if not principal.is_admin:
            raise PermissionDenied("Admin access required")
        if booking.status == BookingStatus.CANCELLED:
            raise ConflictError("Cancelled bookings cannot be reopened")

    previous = booking.status
    booking.status = status
    if booking.payment_record is not None:
        booking.payment_record.status = payment_status_for(status)
    commit_or_raise(db, "Booking update")
    logger.info("Booking %s status %s -> %s", booking_id, previous.value, status.value)
    return booking


def delete_booking(db: Session, booking_id: int, principal: Principal) -> None:
    """Deletes a non-confirmed booking together with its payment record."""
    if not principal.is_admin:
        raise PermissionDenied("Admin access required")
    booking = get_booking(db, booking_id)
    if booking.status == BookingStatus.CONFIRMED:
        raise ConflictError("Cannot delete confirmed booking")
    payment = booking.payment_record
    db.delete(booking)
    if payment is not None:
        db.delete(payment)
    commit_or_raise(db, "Booking deletion")
    logger.info("Booking %s deleted", booking_id)
