"""
Three-step booking wizard used by the public site.

    collect_details (1) -> select_payment (2) -> confirming (3) -> done | failed

Nothing reaches the server before step 3, so going back or cancelling is
always allowed without cleanup. The single ``create_booking`` call happens in
``confirm()``; while it runs the wizard rejects any other input.
"""
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Optional

from .client import ApiError
from .services.currency import format_rupiah

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "Something went wrong while booking. Please try again."

PAYMENT_METHODS = {
    "credit": "Credit Card",
    "bank": "Bank Transfer",
    "ewallet": "E-Wallet",
    "cash": "Cash",
}


class WizardState(str, Enum):
    COLLECT_DETAILS = "collect_details"
    SELECT_PAYMENT = "select_payment"
    CONFIRMING = "confirming"
    DONE = "done"
    FAILED = "failed"

    @property
    def step(self) -> int:
        return {"collect_details": 1, "select_payment": 2}.get(self.value, 3)


class WizardError(Exception):
    """A guard rejected the input; the message is shown to the user."""


@dataclass
class RoomChoice:
    id: int
    name: str
    price: int
    status: str = "available"

    @classmethod
    def from_api(cls, data: dict) -> "RoomChoice":
        return cls(id=data["id"], name=data["room_name"], price=int(data["price"]), status=data.get("status") or "available")


@dataclass
class GuestDetails:
    name: str
    email: str
    phone: str
    start_date: date
    end_date: date


def _parse_date(value) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


class BookingWizard:
    def __init__(self, client, room: RoomChoice, on_booked: Optional[Callable[[dict], None]] = None):
        if room.status == "unavailable":
            raise WizardError("This room is not available for booking")
        self.client = client
        self.room = room
        self.on_booked = on_booked
        self._reset()

    def _reset(self):
        self.state = WizardState.COLLECT_DETAILS
        self.details: Optional[GuestDetails] = None
        self.payment_method: Optional[str] = None
        self.error: Optional[str] = None
        self.booking_id: Optional[int] = None
        self.payment_id: Optional[int] = None

    def _fail_guard(self, message: str):
        self.error = message
        raise WizardError(message)

    def _expect(self, *states: WizardState):
        if self.state == WizardState.CONFIRMING:
            raise WizardError("Your booking is being processed")
        if self.state not in states:
            raise WizardError(f"Not allowed in step '{self.state.value}'")

    @property
    def locked(self) -> bool:
        return self.state == WizardState.CONFIRMING

    # --- Step 1 ---
    def submit_details(self, name: str, email: str, phone: str, start_date, end_date) -> WizardState:
        self._expect(WizardState.COLLECT_DETAILS)
        for label, value in (("company name", name), ("email", email), ("phone number", phone)):
            if not value or not str(value).strip():
                self._fail_guard(f"Please enter your {label}")
        if not start_date or not end_date:
            self._fail_guard("Please select both start and end dates")
        start, end = _parse_date(start_date), _parse_date(end_date)
        if start is None:
            self._fail_guard("Please select a valid start date")
        if end is None:
            self._fail_guard("Please select a valid end date")
        if end <= start:
            self._fail_guard("End date must be after start date")
        self.details = GuestDetails(str(name).strip(), str(email).strip(), str(phone).strip(), start, end)
        self.error = None
        self.state = WizardState.SELECT_PAYMENT
        return self.state

    # --- Step 2 ---
    @property
    def days(self) -> int:
        if not self.details:
            return 1
        diff = (self.details.end_date - self.details.start_date).days
        return diff if diff > 0 else 1

    @property
    def total(self) -> int:
        return self.room.price * self.days

    def select_payment(self, method: str) -> None:
        self._expect(WizardState.SELECT_PAYMENT)
        if method not in PAYMENT_METHODS:
            self._fail_guard(f"Unknown payment method: {method}")
        self.payment_method = method
        self.error = None

    def booking_payload(self) -> dict:
        d = self.details
        return {
            "room_id": self.room.id,
            "name": d.name,
            "email": d.email,
            "phone_number": d.phone,
            "start_date": d.start_date.isoformat(),
            "end_date": d.end_date.isoformat(),
            "price": self.total,
            "payment": self.payment_method,
        }

    # --- Step 3 ---
    def confirm(self) -> WizardState:
        self._expect(WizardState.SELECT_PAYMENT)
        if not self.payment_method:
            self._fail_guard("Please select a payment method")

        self.error = None
        self.state = WizardState.CONFIRMING
        try:
            result = self.client.create_booking(self.booking_payload())
            booking_id, payment_id = result.get("booking_id"), result.get("payment_id")
        except ApiError as e:
            logger.info("Booking for room %s failed: %s", self.room.id, e.message)
            self.error = e.message
            self.state = WizardState.FAILED
            return self.state
        except Exception:
            logger.exception("Booking for room %s failed unexpectedly", self.room.id)
            self.error = UNEXPECTED_ERROR
            self.state = WizardState.FAILED
            return self.state

        self.booking_id, self.payment_id = booking_id, payment_id
        self.state = WizardState.DONE
        if self.on_booked is not None:
            # Refreshing "my bookings" is best effort; the booking already exists
            try:
                self.on_booked(result)
            except Exception as e:
                logger.warning("Could not refresh bookings after %s: %s", self.booking_id, e)
        return self.state

    def summary(self) -> dict:
        if self.state != WizardState.DONE:
            raise WizardError("Booking is not confirmed yet")
        d = self.details
        return {
            "booking_id": f"#{self.booking_id:03d}",
            "company": d.name,
            "email": d.email,
            "room": self.room.name,
            "duration": f"{d.start_date.isoformat()} - {d.end_date.isoformat()}",
            "days": self.days,
            "payment": PAYMENT_METHODS.get(self.payment_method, self.payment_method),
            "total": format_rupiah(self.total),
        }

    # --- Navigation ---
    def retry(self) -> WizardState:
        """Back to payment selection after a failed submission; input is kept."""
        self._expect(WizardState.FAILED)
        self.state = WizardState.SELECT_PAYMENT
        return self.state

    def back(self) -> WizardState:
        self._expect(WizardState.SELECT_PAYMENT, WizardState.FAILED)
        self.error = None
        self.state = WizardState.COLLECT_DETAILS if self.state == WizardState.SELECT_PAYMENT else WizardState.SELECT_PAYMENT
        return self.state

    def cancel(self) -> WizardState:
        """Discards everything collected so far."""
        if self.state == WizardState.CONFIRMING:
            raise WizardError("Your booking is being processed")
        self._reset()
        return self.state
