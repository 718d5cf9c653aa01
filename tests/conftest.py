"""
Shared test fixtures
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.db import Base
from app.models import Guest, Tenant
from app.services.guest_repository import SecureGuestRepository
from app.services.rate_limiter import FixedWindowRateLimiter, set_rate_limiter
from app.services.tenant_repository import SecureTenantRepository
from app.services.tenant_security import SecurityContext

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN = SecurityContext(is_authenticated=True, user_id="admin", is_admin=True)


@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    set_rate_limiter(FixedWindowRateLimiter())
    yield


@pytest.fixture
def admin_context():
    return ADMIN


@pytest.fixture
def tenant_repo(db_session):
    return SecureTenantRepository(db_session, ADMIN)


@pytest.fixture
def guest_repo(db_session):
    return SecureGuestRepository(db_session, ADMIN)


def make_tenant_data(**overrides):
    data = {
        "bride_name": "Anna",
        "groom_name": "Minh",
        "wedding_date": "2030-06-15",
        "venue_name": "Riverside Garden",
        "venue_address": "12 River Road, Hanoi",
    }
    data.update(overrides)
    return data


@pytest.fixture
def sample_tenant(tenant_repo) -> Tenant:
    return tenant_repo.create(make_tenant_data())


@pytest.fixture
def other_tenant(tenant_repo) -> Tenant:
    return tenant_repo.create(make_tenant_data(bride_name="Lan", groom_name="Tuan"))


@pytest.fixture
def sample_guests(guest_repo, sample_tenant):
    """Three guests, one per RSVP status"""
    guests = []
    for name, relationship, attendance in [
        ("John Doe", "Friend", "yes"),
        ("Jane Roe", "Family", "no"),
        ("Bob Smith", "Colleague", "maybe"),
    ]:
        guests.append(guest_repo.create({
            "tenant_id": sample_tenant.id,
            "name": name,
            "relationship": relationship,
            "attendance": attendance,
        }))
    return guests


@pytest.fixture
def tenant_data():
    """Factory for valid tenant payloads"""
    return make_tenant_data


@pytest.fixture
def count_guests(db_session):
    def count(tenant_id) -> int:
        return db_session.query(Guest).filter(Guest.tenant_id == tenant_id).count()
    return count
