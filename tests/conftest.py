import os
from datetime import date, timedelta

os.environ.setdefault("ENVIRONMENT", "test")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from chorescape.auth import IdentityUser, get_identity_provider
from chorescape.database import Base, build_engine, build_session_factory, get_db
from chorescape.domain.bookings.lifecycle import BookingStatus
from chorescape.errors import UnauthenticatedError
from chorescape.main import app
from chorescape.models import Booking, Profile, Role, Service, ServiceOption, ServiceType


class FakeIdentityProvider:
    """Maps bearer tokens to identities without calling the identity provider"""

    def __init__(self):
        self.users: dict[str, IdentityUser] = {}

    def add(self, token: str, user_id: str, email: str = None, name: str = None):
        self.users[token] = IdentityUser(id=user_id, email=email, name=name)

    async def get_user(self, token: str) -> IdentityUser:
        if token not in self.users:
            raise UnauthenticatedError("Invalid or expired token")
        return self.users[token]


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def client(session_factory, identity_provider):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def broken_datastore(client, tmp_path):
    """Point get_db at a database file that cannot be opened"""
    engine = build_engine(f"sqlite:///{tmp_path / 'missing' / 'chorescape.db'}")
    broken_factory = build_session_factory(engine)

    def override_get_db():
        session = broken_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield
    engine.dispose()


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_profile(db, identity_provider):
    """Create a profile and register a token for it. Returns the profile."""

    def _make(role=Role.CUSTOMER, email=None, token=None, full_name=None, is_active=True):
        count = db.query(Profile).count() + 1
        user_id = f"user-{role.value.lower()}-{count}"
        email = email or f"{role.value.lower()}{count}@example.com"
        profile = Profile(
            user_id=user_id,
            email=email,
            full_name=full_name or f"{role.value.title()} {count}",
            role=role,
            is_active=is_active,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        identity_provider.add(token or f"token-{user_id}", user_id, email)
        profile.token = token or f"token-{user_id}"
        return profile

    return _make


@pytest.fixture
def customer(make_profile):
    return make_profile(Role.CUSTOMER, email="alice@example.com", full_name="Alice")


@pytest.fixture
def worker(make_profile):
    return make_profile(Role.WORKER, email="walt@example.com", full_name="Walt")


@pytest.fixture
def admin(make_profile):
    return make_profile(Role.ADMIN, email="ada@example.com", full_name="Ada")


@pytest.fixture
def make_service(db):
    def _make(name="Deep Clean", slug="deep-clean", options=(), **kwargs):
        service = Service(name=name, slug=slug, type=ServiceType.RESIDENTIAL, **kwargs)
        for option in options:
            service.options.append(ServiceOption(**option))
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make


@pytest.fixture
def make_booking(db):
    def _make(status=BookingStatus.PENDING, customer=None, worker=None, **kwargs):
        values = {
            "service_name": "Deep Clean",
            "date": date.today() + timedelta(days=7),
            "address_line": "1 Main St",
            "city": "Regina",
        }
        values.update(kwargs)
        booking = Booking(
            status=status,
            customer_id=customer.id if customer else None,
            assigned_worker_id=worker.id if worker else None,
            **values,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


@pytest.fixture
def booking_payload():
    return {
        "serviceSlug": "deep-clean",
        "date": (date.today() + timedelta(days=7)).isoformat(),
        "timeSlot": "09:00-11:00",
        "addressLine": "1 Main St",
        "city": "Regina",
        "totalAmount": 150,
    }
