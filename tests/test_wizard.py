import pytest

from seru.client import ApiError, SeruClient
from seru.models import Booking, BookingStatus, PaymentStatus
from seru.wizard import UNEXPECTED_ERROR, BookingWizard, RoomChoice, WizardError, WizardState

from .conftest import ADMIN_PASSWORD, USER_PASSWORD, make_client, make_booking

MEETING_ROOM = RoomChoice(id=3, name="Meeting Room A", price=500000)


class FakeClient:
    def __init__(self, result=None, error=None):
        self.result = result or {"message": "Booking created successfully", "booking_id": 7, "payment_id": 11}
        self.error = error
        self.payloads = []

    def create_booking(self, payload):
        self.payloads.append(payload)
        if self.error:
            raise self.error
        return self.result


def _ready_wizard(client, **kwargs):
    wizard = BookingWizard(client, MEETING_ROOM, **kwargs)
    wizard.submit_details("PT Maju Jaya", "budi@example.com", "081234567890", "2025-10-26", "2025-10-28")
    return wizard


def test_happy_path_submits_once_with_computed_total():
    client = FakeClient()
    refreshed = []
    wizard = _ready_wizard(client, on_booked=refreshed.append)
    assert wizard.state == WizardState.SELECT_PAYMENT
    assert wizard.state.step == 2

    wizard.select_payment("bank")
    assert wizard.confirm() == WizardState.DONE

    assert client.payloads == [{
        "room_id": 3,
        "name": "PT Maju Jaya",
        "email": "budi@example.com",
        "phone_number": "081234567890",
        "start_date": "2025-10-26",
        "end_date": "2025-10-28",
        "price": 1000000,
        "payment": "bank",
    }]
    assert wizard.booking_id == 7
    assert refreshed == [client.result]
    summary = wizard.summary()
    assert summary["booking_id"] == "#007"
    assert summary["total"] == "Rp 1.000.000"
    assert summary["payment"] == "Bank Transfer"
    assert summary["days"] == 2


@pytest.mark.parametrize("details,message", [
    (("", "a@b.c", "1", "2025-10-26", "2025-10-28"), "Please enter your company name"),
    (("PT", "a@b.c", " ", "2025-10-26", "2025-10-28"), "Please enter your phone number"),
    (("PT", "a@b.c", "1", "", "2025-10-28"), "Please select both start and end dates"),
    (("PT", "a@b.c", "1", "2025-10-28", "2025-10-28"), "End date must be after start date"),
    (("PT", "a@b.c", "1", "tomorrow", "2025-10-28"), "Please select a valid start date"),
])
def test_details_guard(details, message):
    wizard = BookingWizard(FakeClient(), MEETING_ROOM)
    with pytest.raises(WizardError) as exc:
        wizard.submit_details(*details)
    assert str(exc.value) == message
    assert wizard.state == WizardState.COLLECT_DETAILS


def test_confirm_without_payment_method_stays_on_step_two():
    client = FakeClient()
    wizard = _ready_wizard(client)

    with pytest.raises(WizardError):
        wizard.confirm()

    assert wizard.state == WizardState.SELECT_PAYMENT
    assert wizard.error == "Please select a payment method"
    assert client.payloads == []


def test_unknown_payment_method():
    wizard = _ready_wizard(FakeClient())
    with pytest.raises(WizardError):
        wizard.select_payment("bitcoin")
    assert wizard.payment_method is None


def test_server_error_is_shown_verbatim_and_retry_keeps_input():
    client = FakeClient(error=ApiError("Room is already booked for the selected dates", 409))
    wizard = _ready_wizard(client)
    wizard.select_payment("cash")

    assert wizard.confirm() == WizardState.FAILED
    assert wizard.error == "Room is already booked for the selected dates"

    assert wizard.retry() == WizardState.SELECT_PAYMENT
    assert wizard.payment_method == "cash"
    client.error = None
    assert wizard.confirm() == WizardState.DONE
    assert len(client.payloads) == 2


def test_input_is_locked_while_confirming():
    attempts = []

    class ReentrantClient(FakeClient):
        def create_booking(self, payload):
            assert wizard.locked
            for action in (lambda: wizard.select_payment("cash"), wizard.back, wizard.cancel, wizard.confirm, wizard.retry):
                with pytest.raises(WizardError) as exc:
                    action()
                attempts.append(str(exc.value))
            return super().create_booking(payload)

    client = ReentrantClient()
    wizard = _ready_wizard(client)
    wizard.select_payment("credit")

    assert wizard.confirm() == WizardState.DONE
    assert attempts == ["Your booking is being processed"] * 5
    assert wizard.payment_method == "credit"
    assert len(client.payloads) == 1


@pytest.mark.parametrize("error", [KeyError("data"), RuntimeError("connection reset")])
def test_unexpected_client_failure_can_be_retried_or_cancelled(error):
    client = FakeClient(error=error)
    wizard = _ready_wizard(client)
    wizard.select_payment("bank")

    assert wizard.confirm() == WizardState.FAILED
    assert wizard.error == UNEXPECTED_ERROR
    assert not wizard.locked

    assert wizard.retry() == WizardState.SELECT_PAYMENT
    assert wizard.cancel() == WizardState.COLLECT_DETAILS


def test_failing_refresh_does_not_undo_a_booking():
    def refresh(result):
        raise ValueError("bad bookings payload")

    wizard = _ready_wizard(FakeClient(), on_booked=refresh)
    wizard.select_payment("bank")

    assert wizard.confirm() == WizardState.DONE
    assert wizard.summary()["booking_id"] == "#007"


def test_back_and_cancel():
    wizard = _ready_wizard(FakeClient())
    assert wizard.back() == WizardState.COLLECT_DETAILS
    assert wizard.details is not None

    wizard.submit_details("PT Lain", "x@example.com", "1", "2025-11-01", "2025-11-05")
    assert wizard.days == 4
    wizard.select_payment("ewallet")
    assert wizard.cancel() == WizardState.COLLECT_DETAILS
    assert wizard.details is None
    assert wizard.payment_method is None


def test_unavailable_room_cannot_start_wizard():
    with pytest.raises(WizardError):
        BookingWizard(FakeClient(), RoomChoice(id=1, name="Closed", price=1, status="unavailable"))


def test_summary_before_done():
    with pytest.raises(WizardError):
        _ready_wizard(FakeClient()).summary()


def test_wizard_against_api(client, db, room, user):
    api = SeruClient(base_url="http://testserver", session=client)
    api.login(user.email, USER_PASSWORD)
    rooms = api.list_rooms()
    refreshed = []

    wizard = BookingWizard(api, RoomChoice.from_api(rooms[0]), on_booked=lambda _: refreshed.extend(api.user_bookings(user.id)))
    wizard.submit_details("PT Maju Jaya", user.email, user.phone_number, "2025-10-26", "2025-10-28")
    wizard.select_payment("bank")

    assert wizard.confirm() == WizardState.DONE
    booking = db.get(Booking, wizard.booking_id)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.price == 1000000
    assert booking.payment_record.status == PaymentStatus.PENDING
    assert [b["id"] for b in refreshed] == [wizard.booking_id]

    # Overlapping dates: the server's conflict message reaches the wizard
    second = BookingWizard(api, RoomChoice.from_api(rooms[0]))
    second.submit_details("PT Maju Jaya", user.email, user.phone_number, "2025-10-27", "2025-10-29")
    second.select_payment("cash")
    assert second.confirm() == WizardState.FAILED
    assert second.error == "Room is already booked for the selected dates"


def test_client_maps_error_envelope(client, room):
    api = SeruClient(base_url="http://testserver", session=client)
    with pytest.raises(ApiError) as exc:
        api.create_booking({"room_id": room.id})
    assert exc.value.status_code == 400
    assert exc.value.message == "Name is required"


def test_client_manages_bookings(client, db, room, user, admin):
    api = SeruClient(base_url="http://testserver", session=client)
    api.login(user.email, USER_PASSWORD)
    booking_id = api.create_booking({
        "room_id": room.id,
        "name": "PT Maju Jaya",
        "email": user.email,
        "phone_number": user.phone_number,
        "start_date": "2025-10-26",
        "end_date": "2025-10-28",
        "price": 1000000,
        "payment": "bank",
    })["booking_id"]

    assert api.get_booking(booking_id)["status"] == "confirmed"
    assert api.update_booking_status(booking_id, "cancelled")["success"] is True
    assert api.get_booking(booking_id)["status"] == "cancelled"

    with pytest.raises(ApiError) as exc:
        api.delete_booking(booking_id)
    assert exc.value.status_code == 403

    admin_session = make_client(db)
    try:
        admin_api = SeruClient(base_url="http://testserver", session=admin_session)
        assert admin_api.admin_login("admin", ADMIN_PASSWORD)["admin_name"] == "admin"
        assert admin_api.delete_booking(booking_id)["success"] is True

        with pytest.raises(ApiError) as exc:
            admin_api.get_booking(booking_id)
        assert (exc.value.status_code, exc.value.message) == (404, "Booking not found")

        admin_api.logout()
        pending = make_booking(db, room, status=BookingStatus.PENDING, start="2025-11-01", end="2025-11-02")
        with pytest.raises(ApiError) as exc:
            admin_api.delete_booking(pending.id)
        assert (exc.value.status_code, exc.value.message) == (403, "Admin access required")
    finally:
        admin_session.close()


def test_client_reports_admin_login_failure(client, admin):
    api = SeruClient(base_url="http://testserver", session=client)
    with pytest.raises(ApiError) as exc:
        api.admin_login("admin", "wrong")
    assert exc.value.message == "Invalid admin credentials"
