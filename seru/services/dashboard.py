import logging
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..errors import NotFoundError
from ..models import Booking, BookingStatus, Room, RoomStatus, User
from ..db import commit_or_raise
from .currency import format_booking_code, format_display_date, format_rupiah

logger = logging.getLogger(__name__)

RECENT_BOOKINGS_LIMIT = 5


def _status_class(room_status: RoomStatus) -> str:
    return "available" if room_status == RoomStatus.AVAILABLE else "occupied"


def _utc_today() -> date:
    """The current day on the clock ``created_at`` is stored in (UTC)."""
    return datetime.utcnow().date()


def _active_on(day: date):
    return (
        Booking.status == BookingStatus.CONFIRMED,
        Booking.start_date <= day,
        Booking.end_date >= day,
    )


def dashboard_stats(db: Session, today: date | None = None) -> dict:
    # Stay dates are local calendar dates
    today = today or date.today()
    active_today = db.query(func.count(Booking.id)).filter(*_active_on(today)).scalar() or 0

    per_room = dict(
        db.query(Booking.room_id, func.count(Booking.id))
        .filter(*_active_on(today))
        .group_by(Booking.room_id)
        .all()
    )
    room_details = []
    for room in db.query(Room).order_by(Room.room_name.asc()).all():
        count = per_room.get(room.id, 0)
        room_details.append({
            "id": room.id,
            "name": room.room_name,
            "price": format_rupiah(room.price),
            "status": room.status.value,
            "status_class": _status_class(room.status),
            "today_bookings": f"{count} {'booking' if count == 1 else 'bookings'}",
        })

    recent = (
        db.query(Booking)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(RECENT_BOOKINGS_LIMIT)
        .all()
    )
    recent_bookings = [
        {
            "id": "#" + format_booking_code(b.id),
            "customer": b.user_name or b.name,
            "email": b.user_email or b.email,
            "room": b.room_name,
            "start_date": format_display_date(b.start_date),
            "end_date": format_display_date(b.end_date),
            "status": b.status.value.capitalize(),
            "status_class": "available" if b.status == BookingStatus.CONFIRMED else "cancelled",
            "amount": format_rupiah(b.price),
        }
        for b in recent
    ]

    return {
        "total_bookings": db.query(func.count(Booking.id)).scalar() or 0,
        "active_today": active_today,
        "total_rooms": len(room_details),
        "room_details": room_details,
        "recent_bookings": recent_bookings,
    }


def customers_overview(db: Session, today: date | None = None) -> dict:
    """
    One entry per customer. Registered users are grouped by account; guest
    bookings (no account) are grouped by their (name, email) pair.
    ``today`` is a UTC date, compared against ``created_at``.
    """
    today = today or _utc_today()
    groups: dict[tuple, dict] = {}
    for b in db.query(Booking).order_by(Booking.created_at.asc(), Booking.id.asc()).all():
        if b.user is not None:
            key = ("user", b.user.id)
            identity = {"id": b.user.id, "name": b.user.name, "email": b.user.email, "phone": b.user.phone_number, "customer_type": "Registered"}
        else:
            key = ("guest", b.name, b.email)
            identity = {"id": None, "name": b.name, "email": b.email, "phone": b.phone_number, "customer_type": "Guest"}
        entry = groups.setdefault(key, {**identity, "total_bookings": 0, "spent": 0, "latest": None, "active_this_month": False})
        entry["total_bookings"] += 1
        entry["spent"] += b.price or 0
        entry["latest"] = b.created_at
        if b.created_at and (b.created_at.year, b.created_at.month) == (today.year, today.month):
            entry["active_this_month"] = True

    ordered = sorted(groups.values(), key=lambda c: c["latest"] or datetime.min, reverse=True)
    customers = [
        {
            "id": c["id"],
            "name": c["name"],
            "email": c["email"],
            "phone": c["phone"],
            "total_bookings": c["total_bookings"],
            "total_spent": format_rupiah(c["spent"]),
            "status": "Active" if c["total_bookings"] > 0 else "Inactive",
            "customer_type": c["customer_type"],
        }
        for c in ordered
    ]
    return {
        "customers": customers,
        "stats": {
            "total_customers": len(customers),
            "active_this_month": sum(1 for c in ordered if c["active_this_month"]),
        },
    }


def rooms_overview(db: Session, today: date | None = None) -> dict:
    """Per-room booking totals. ``today_bookings`` counts bookings created on the UTC day ``today``."""
    today = today or _utc_today()
    totals = dict(
        db.query(Booking.room_id, func.count(Booking.id)).group_by(Booking.room_id).all()
    )
    created_today = dict(
        db.query(Booking.room_id, func.count(Booking.id))
        .filter(func.date(Booking.created_at) == today.isoformat())
        .group_by(Booking.room_id)
        .all()
    )
    rooms = []
    for room in db.query(Room).order_by(Room.room_name.asc()).all():
        rooms.append({
            "id": room.id,
            "name": room.room_name,
            "price": format_rupiah(room.price),
            "description": room.description,
            "status": room.status.value,
            "status_class": _status_class(room.status),
            "total_bookings": totals.get(room.id, 0),
            "today_bookings": created_today.get(room.id, 0),
        })
    available = sum(1 for r in rooms if r["status"] == RoomStatus.AVAILABLE.value)
    return {
        "rooms": rooms,
        "stats": {
            "total_rooms": len(rooms),
            "available_rooms": available,
            "occupied_rooms": len(rooms) - available,
            "total_today_bookings": sum(r["today_bookings"] for r in rooms),
        },
    }


def get_customer(db: Session, user_id: int) -> dict:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("Customer not found")
    return {"id": user.id, "name": user.name, "email": user.email, "phone": user.phone_number}


def delete_customer_bookings(db: Session, user_id: int) -> int:
    """Removes every booking of a customer along with the payment records. Returns the count."""
    if not db.get(User, user_id):
        raise NotFoundError("Customer not found")
    bookings = db.query(Booking).filter(Booking.user_id == user_id).all()
    for b in bookings:
        payment = b.payment_record
        db.delete(b)
        if payment is not None:
            db.delete(payment)
    commit_or_raise(db, "Customer booking deletion")
    logger.info("Deleted %s bookings of customer %s", len(bookings), user_id)
    return len(bookings)
