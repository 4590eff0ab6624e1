import os
from datetime import date

# Must be set before any seru module reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from seru import models  # noqa: F401
from seru.db import Base, SessionLocal, engine, get_db
from seru.main import app
from seru.models import Admin, Booking, BookingStatus, Payment, PaymentStatus, Room, RoomStatus, User
from seru.security import Principal, hash_password

USER_PASSWORD = "secret123"
ADMIN_PASSWORD = "admin-pass"


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)


def make_client(db: Session) -> TestClient:
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def client(db: Session):
    """Anonymous client sharing the test session."""
    test_client = make_client(db)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


def make_room(db: Session, room_name="Meeting Room A", price=500000, status=RoomStatus.AVAILABLE, description="") -> Room:
    room = Room(room_name=room_name, price=price, status=status, description=description)
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


def make_user(db: Session, email="budi@example.com", name="Budi Santoso", phone_number="081234567890") -> User:
    user = User(name=name, email=email, phone_number=phone_number, hashed_password=hash_password(USER_PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_booking(db: Session, room: Room, user: User | None = None, status=BookingStatus.CONFIRMED, start="2025-10-26", end="2025-10-28", price=1000000, name=None, email=None, id=None) -> Booking:
    """Writes a booking directly, bypassing the lifecycle rules."""
    payment = Payment(price=price, payment_method="bank", status=PaymentStatus.PENDING)
    db.add(payment)
    db.flush()
    booking = Booking(
        id=id,
        user_id=user.id if user else None,
        room_id=room.id,
        payment_id=payment.id,
        name=name or (user.name if user else "Walk-in Guest"),
        email=email or (user.email if user else "guest@example.com"),
        phone_number="0800000000",
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        price=price,
        payment="bank",
        status=status,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def room(db: Session) -> Room:
    return make_room(db)


@pytest.fixture
def user(db: Session) -> User:
    return make_user(db)


@pytest.fixture
def other_user(db: Session) -> User:
    return make_user(db, email="sari@example.com", name="Sari Dewi", phone_number="081298765432")


@pytest.fixture
def admin(db: Session) -> Admin:
    admin = Admin(admin_name="admin", hashed_password=hash_password(ADMIN_PASSWORD))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def user_principal(user: User) -> Principal:
    return Principal(user_id=user.id)


@pytest.fixture
def admin_principal(admin: Admin) -> Principal:
    return Principal(admin_id=admin.id)


def login_user(client: TestClient, email: str, password: str = USER_PASSWORD):
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response


def login_admin(client: TestClient, admin_name: str = "admin", password: str = ADMIN_PASSWORD):
    response = client.post("/auth/admin_login", json={"admin_name": admin_name, "password": password})
    assert response.status_code == 200, response.text
    return response


@pytest.fixture
def user_client(client: TestClient, user: User) -> TestClient:
    login_user(client, user.email)
    return client


@pytest.fixture
def admin_client(db: Session, admin: Admin):
    """A second client holding only an admin session."""
    test_client = make_client(db)
    login_admin(test_client)

    yield test_client

    test_client.close()
    app.dependency_overrides.clear()
