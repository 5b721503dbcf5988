from __future__ import annotations

import os
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

# Settings are cached on first use, so the environment is prepared before the
# application modules are imported.
_scratch = Path(tempfile.mkdtemp(prefix="villa-booking-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_scratch / 'default.db'}")
os.environ.setdefault("MEDIA_ROOT", str(_scratch / "media"))
os.environ.setdefault("ADMIN_EMAIL", "owner@villa-rental.test")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import villa_booking.models  # noqa: F401
from villa_booking.core.deps import get_db
from villa_booking.core.security import create_access_token, hash_password
from villa_booking.db.base import Base
from villa_booking.db.session import make_engine
from villa_booking.main import app
from villa_booking.models.blackout_date import BlackoutDate
from villa_booking.models.booking import STATUS_CONFIRMED, Booking
from villa_booking.models.pricing_rule import PricingRule
from villa_booking.models.property import Property
from villa_booking.models.user import ROLE_ADMIN, ROLE_GUEST, User
from villa_booking.services.notification_service import get_notifier
from villa_booking.services.storage import LocalStorage, get_storage


class RecordingNotifier:
    def __init__(self, guest_ok: bool = True, admin_ok: bool = True, fail_with: Exception | None = None):
        self.guest_ok = guest_ok
        self.admin_ok = admin_ok
        self.fail_with = fail_with
        self.sent: list[tuple[str, str]] = []

    def send_guest_confirmation(self, summary) -> bool:
        self.sent.append(("guest", summary.reference))
        if self.fail_with is not None:
            raise self.fail_with
        return self.guest_ok

    def send_admin_alert(self, summary) -> bool:
        self.sent.append(("admin", summary.reference))
        return self.admin_ok


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "media", "/media")


@pytest.fixture
def client(session_factory, notifier, storage):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_villa(db):
    counter = {"n": 0}

    def _make(**overrides) -> Property:
        counter["n"] += 1
        data = {
            "slug": f"villa-{counter['n']}",
            "name": f"Villa {counter['n']}",
            "description": "Quiet villa with a private pool",
            "location": "Ubud, Bali",
            "bedrooms": 2,
            "bathrooms": 2,
            "max_guests": 4,
            "base_price": Decimal("1000000"),
            "amenities": ["pool", "wifi"],
        }
        data.update(overrides)
        prop = Property(**data)
        db.add(prop)
        db.commit()
        return prop

    return _make


@pytest.fixture
def villa(make_villa) -> Property:
    return make_villa()


@pytest.fixture
def add_rule(db):
    def _add(prop: Property, *, starts_on: date, ends_on: date, kind: str, value, **extra) -> PricingRule:
        rule = PricingRule(property_id=prop.id, starts_on=starts_on, ends_on=ends_on, kind=kind, value=Decimal(str(value)), **extra)
        db.add(rule)
        db.commit()
        return rule

    return _add


@pytest.fixture
def add_blackout(db):
    def _add(prop: Property, day: date, reason: str = "maintenance") -> BlackoutDate:
        b = BlackoutDate(property_id=prop.id, date=day, reason=reason)
        db.add(b)
        db.commit()
        return b

    return _add


@pytest.fixture
def add_booking(db):
    counter = {"n": 0}

    def _add(prop: Property, check_in: date, check_out: date, *, status: str = STATUS_CONFIRMED, **extra) -> Booking:
        counter["n"] += 1
        data = {
            "reference": f"VIL-TEST-{counter['n']:06d}",
            "property_id": prop.id,
            "guest_name": "Existing Guest",
            "guest_email": "existing@example.com",
            "guest_phone": "+628111111111",
            "check_in": check_in,
            "check_out": check_out,
            "guests": 2,
            "total_price": Decimal("1000000"),
            "status": status,
        }
        data.update(extra)
        b = Booking(**data)
        db.add(b)
        db.commit()
        return b

    return _add


@pytest.fixture
def make_user(db):
    def _make(email: str, *, role: str = ROLE_GUEST, password: str = "password123", name: str = "Test User") -> User:
        user = User(email=email, name=name, hashed_password=hash_password(password), role=role, is_active=True)
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def admin_headers(make_user):
    admin = make_user("admin@villa-rental.test", role=ROLE_ADMIN, name="Admin")
    return {"Authorization": f"Bearer {create_access_token(admin.id)}"}


@pytest.fixture
def guest_user(make_user) -> User:
    return make_user("guest@example.com", name="Guest")


@pytest.fixture
def guest_headers(guest_user):
    return {"Authorization": f"Bearer {create_access_token(guest_user.id)}"}


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(admin_ok=False, fail_with=RuntimeError("smtp down"))
