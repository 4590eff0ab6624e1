from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Integer, String, Text, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..db import Base

class RoomStatus(str, PyEnum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"

class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    room_name: Mapped[str] = mapped_column(String(200), nullable=False)
    # Whole Rupiah per day
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[RoomStatus] = mapped_column(
        Enum(RoomStatus, values_callable=lambda e: [m.value for m in e]),
        default=RoomStatus.AVAILABLE,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Deleting a room never removes its bookings; see room_catalog.delete_room
    bookings: Mapped[list["Booking"]] = relationship(back_populates="room")
