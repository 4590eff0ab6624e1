from .user import User
from .admin import Admin
from .room import Room, RoomStatus
from .payment import Payment, PaymentStatus
from .booking import Booking, BookingStatus
