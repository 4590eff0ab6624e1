from seru.models import Booking, BookingStatus, Payment, PaymentStatus

from .conftest import login_user, make_booking


def _payload(room, **overrides):
    data = {
        "room_id": room.id,
        "name": "PT Maju Jaya",
        "email": "budi@example.com",
        "phone_number": "081234567890",
        "start_date": "2025-10-26",
        "end_date": "2025-10-28",
        "price": 1000000,
        "payment": "ewallet",
    }
    data.update(overrides)
    return data


def test_create_booking_envelope(user_client, db, room):
    response = user_client.post("/bookings", json=_payload(room))

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["message"] == "Booking created successfully"
    booking = db.get(Booking, body["data"]["booking_id"])
    assert booking.payment_id == body["data"]["payment_id"]
    assert booking.status == BookingStatus.CONFIRMED


def test_create_booking_requires_session(client, room):
    response = client.post("/bookings", json=_payload(room))
    assert response.status_code == 401
    assert response.json() == {"error": "User must be logged in to create a booking"}


def test_validation_errors_are_400(user_client, db, room):
    response = user_client.post("/bookings", json=_payload(room, end_date="2025-10-26"))
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid dates. End date must be after start date."}
    assert db.query(Payment).count() == 0


def test_malformed_body_is_400(user_client, room):
    response = user_client.post("/bookings", json=_payload(room, room_id="not-a-number"))
    assert response.status_code == 400
    assert "error" in response.json()


def test_double_booking_is_409(user_client, room):
    assert user_client.post("/bookings", json=_payload(room)).status_code == 200
    response = user_client.post("/bookings", json=_payload(room))
    assert response.status_code == 409


def test_get_own_booking(user_client, db, room, user):
    booking = make_booking(db, room, user)

    response = user_client.get("/bookings", params={"action": "get_booking", "id": booking.id})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["room_name"] == "Meeting Room A"
    assert data["user_email"] == "budi@example.com"
    assert data["status"] == "confirmed"


def test_cannot_view_someone_elses_booking(user_client, db, room, other_user):
    booking = make_booking(db, room, other_user)
    response = user_client.get("/bookings", params={"action": "get_booking", "id": booking.id})
    assert response.status_code == 403


def test_user_bookings_newest_first(user_client, db, room, user):
    first = make_booking(db, room, user, start="2025-10-01", end="2025-10-02")
    second = make_booking(db, room, user, start="2025-10-05", end="2025-10-06")

    response = user_client.get("/bookings", params={"action": "user_bookings", "user_id": user.id})

    assert [b["id"] for b in response.json()["data"]] == [second.id, first.id]


def test_listing_all_bookings_is_admin_only(client, admin_client, db, room, user):
    make_booking(db, room, user)
    assert client.get("/bookings").status_code == 403
    response = admin_client.get("/bookings")
    assert response.status_code == 200
    assert len(response.json()["data"]) == 1


def test_admin_confirms_booking(admin_client, db, room):
    booking = make_booking(db, room, status=BookingStatus.PENDING, id=7)

    response = admin_client.put("/bookings", params={"id": 7}, json={"status": "confirmed"})

    assert response.status_code == 200
    db.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_record.status == PaymentStatus.COMPLETED


def test_owner_cancels_via_api(user_client, db, room, user):
    booking = make_booking(db, room, user, id=9)

    response = user_client.put("/bookings", params={"id": 9}, json={"status": "cancelled"})

    assert response.status_code == 200
    db.refresh(booking)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.payment_record.status == PaymentStatus.REFUNDED


def test_non_owner_cancel_is_403(client, db, room, user, other_user):
    booking = make_booking(db, room, user, id=9)
    login_user(client, other_user.email)

    response = client.put("/bookings", params={"id": 9}, json={"status": "cancelled"})

    assert response.status_code == 403
    assert response.json() == {"error": "You can only cancel your own bookings"}
    db.refresh(booking)
    assert booking.status == BookingStatus.CONFIRMED


def test_update_requires_id(admin_client):
    response = admin_client.put("/bookings", json={"status": "confirmed"})
    assert response.status_code == 400
    assert response.json() == {"error": "Booking ID is required"}


def test_delete_confirmed_is_409(admin_client, db, room):
    booking = make_booking(db, room)
    response = admin_client.delete("/bookings", params={"id": booking.id})
    assert response.status_code == 409
    assert response.json() == {"error": "Cannot delete confirmed booking"}


def test_delete_pending(admin_client, db, room):
    booking = make_booking(db, room, status=BookingStatus.PENDING)
    response = admin_client.delete("/bookings", params={"id": booking.id})
    assert response.status_code == 200
    assert db.query(Booking).count() == 0
    assert db.query(Payment).count() == 0


def test_delete_by_user_is_403(user_client, db, room, user):
    booking = make_booking(db, room, user, status=BookingStatus.PENDING)
    assert user_client.delete("/bookings", params={"id": booking.id}).status_code == 403


def test_unknown_booking_is_404(admin_client):
    response = admin_client.get("/bookings", params={"action": "get_booking", "id": 12345})
    assert response.status_code == 404
    assert response.json() == {"error": "Booking not found"}


def test_wrong_method_is_405(client):
    response = client.patch("/bookings")
    assert response.status_code == 405
    assert "error" in response.json()
