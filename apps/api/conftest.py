"""
Shared pytest fixtures.

Provides an in-memory database shared with the app, per-test settings with a
temporary upload directory, account fixtures and bearer-token headers by role.
"""
import os
import tempfile
from datetime import date, timedelta

# Must be set before the app modules are imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="medico-uploads-"))
os.environ.setdefault("SQLITE_FILE", os.path.join(tempfile.mkdtemp(prefix="medico-db-"), "test.db"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from main import app
from auth import create_access_token, get_password_hash, ROLE_ADMIN, ROLE_MEMBER, ROLE_PARTNER
from config import Settings, get_settings
from database import get_session
from models import User, UserRole, MembershipStatus, PartnerStatus
from rate_limit import limiter
from schemas import PartnerApplication
from services import partner_registry
from services.upload_store import UploadStore

limiter.enabled = False

PASSWORD = "secret123"


@pytest.fixture
def settings(tmp_path):
    """Fast bcrypt and a private upload directory per test"""
    return Settings(
        SECRET_KEY="test-secret-key",
        BCRYPT_ROUNDS=4,
        UPLOAD_DIR=str(tmp_path / "uploads"),
        RATE_LIMIT_ENABLED=False,
    )


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def store(settings):
    return UploadStore(settings.UPLOAD_DIR, url_prefix=settings.UPLOAD_URL_PREFIX)


@pytest.fixture
def client(session, settings):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# Accounts
# ============================================================================

@pytest.fixture
def make_user(session, settings):
    """Factory for member/admin accounts"""
    def _make_user(**fields):
        defaults = {
            "email": "ravi@medico.in",
            "password_hash": get_password_hash(PASSWORD, rounds=settings.BCRYPT_ROUNDS),
            "role": UserRole.MEMBER,
            "name": "Ravi Kumar",
            "phone": "9876500001",
            "membership_id": "MED-1001",
            "plan": "Gold",
            "family_members": 0,
            "family_details": [],
            "valid_until": date.today() + timedelta(days=365),
            "status": MembershipStatus.ACTIVE,
        }
        defaults.update(fields)
        user = User(**defaults)
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make_user


@pytest.fixture
def member(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(
        email="admin@medico.in",
        role=UserRole.ADMIN,
        name="Admin User",
        membership_id=None,
        plan=None,
        valid_until=None,
    )


@pytest.fixture
def member_headers(member, settings):
    token = create_access_token(settings, member.id, member.email, ROLE_MEMBER)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin, settings):
    token = create_access_token(settings, admin.id, admin.email, ROLE_ADMIN)
    return {"Authorization": f"Bearer {token}"}


# ============================================================================
# Partners
# ============================================================================

def partner_form(**overrides):
    """Multipart form fields for a complete registration"""
    data = {
        "role": "clinic",
        "responsibleName": "Dr. Meera Nair",
        "responsibleAge": "45",
        "responsibleSex": "F",
        "responsibleDOB": "1980-02-11",
        "contactEmail": "contact@sunrise.in",
        "contactPhone": "9847000000",
        "email": "login@sunrise.in",
        "password": PASSWORD,
        "councilName": "Kerala Medical Council",
        "councilNumber": "KMC-4411",
        "clinicName": "Sunrise Clinic",
        "specialization": "Dental",
        "address": "MG Road, Kochi",
        "state": "Kerala",
        "district": "Ernakulam",
        "pincode": "682001",
        "dayFrom": "Mon",
        "dayTo": "Sat",
        "timeFrom": "09:00",
        "timeTo": "18:00",
        "discountAmount": "10%",
        "discountItems": '["Consultation", "X-Ray"]',
    }
    data.update(overrides)
    return {key: value for key, value in data.items() if value is not None}


@pytest.fixture
def make_partner(session, store, settings):
    """Factory creating partners through the registry; active=True approves them"""
    counter = {"n": 0}

    def _make_partner(active=True, **fields):
        counter["n"] += 1
        values = {
            "role": "clinic",
            "responsible_name": f"Dr. Partner {counter['n']}",
            "contact_email": f"contact{counter['n']}@partners.in",
            "email": f"partner{counter['n']}@partners.in",
            "password": PASSWORD,
            "clinic_name": f"Clinic {counter['n']}",
            "state": "Kerala",
            "district": "Ernakulam",
            "address": "MG Road, Kochi",
            "specialization": "General",
        }
        values.update(fields)
        partner = partner_registry.register_partner(session, store, settings, PartnerApplication(**values))
        if active:
            partner = partner_registry.approve_application(session, partner.id)
        return partner
    return _make_partner


@pytest.fixture
def partner(make_partner):
    return make_partner(clinic_name="Sunrise Clinic", responsible_name="Dr. Meera Nair")


@pytest.fixture
def partner_headers(partner, settings):
    assert partner.status == PartnerStatus.ACTIVE
    token = create_access_token(settings, partner.id, partner.email, ROLE_PARTNER)
    return {"Authorization": f"Bearer {token}"}
