"""Shared fixtures: in-memory database, seeded schedule, admin auth and a fake outbox."""
import os

# Must be set before spa_booking.config is imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("BREVO_API_KEY", None)
os.environ.pop("TWILIO_ACCOUNT_SID", None)

from datetime import date, datetime

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from spa_booking.database import Base, get_db
import spa_booking.models  # noqa: F401
from spa_booking.models import Service, User
from spa_booking.schemas.reservation import BookingRequest
from spa_booking.seed import seed_schedule, seed_services
from spa_booking.services import notification_service
from spa_booking.utils.security import create_access_token

# 2030-01-07 is a Monday; far enough ahead that real "now" never reaches it
MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 12)
SUNDAY = date(2030, 1, 13)
BEFORE_MONDAY = datetime(2030, 1, 6, 12, 0)

ADMIN_EMAIL = "admin@serenityspa.test"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def schedule(db):
    """Monday-Friday 09:00-18:00, Saturday 10:00-16:00, Sunday closed."""
    seed_schedule(db)
    db.commit()


@pytest.fixture
def services(db, schedule):
    seed_services(db)
    db.commit()
    return {s.duration_minutes: s for s in db.query(Service).order_by(Service.id).all()}


@pytest.fixture
def massage(services) -> Service:
    """The 60-minute relaxing massage."""
    return services[60]


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outgoing notification emails instead of calling Brevo."""
    sent = []

    def fake_send_email(to_email, subject, html_content, from_email=None):
        sent.append({"to": to_email, "subject": subject, "html": html_content})
        return {"success": True, "message": "Email sent successfully"}

    monkeypatch.setattr(notification_service, "send_email", fake_send_email)
    return sent


@pytest.fixture
def booking_request():
    def _make(service_id: int, start_at: datetime, **overrides) -> BookingRequest:
        data = {
            "client_name": "Ana Lopez",
            "client_email": "ana@example.com",
            "client_phone": "+34 600 123 456",
            "service_id": service_id,
            "start_at": start_at,
        }
        data.update(overrides)
        return BookingRequest(**data)

    return _make


@pytest.fixture
def client(db):
    from spa_booking.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db) -> User:
    from spa_booking.utils.security import get_password_hash

    user = User(
        email=ADMIN_EMAIL,
        hashed_password=get_password_hash("s3cret-pass"),
        full_name="Spa Admin",
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_headers(admin_user):
    token = create_access_token(data={"sub": admin_user.email})
    return {"Authorization": f"Bearer {token}"}
