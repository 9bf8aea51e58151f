"""Shared test fixtures."""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["INTERNAL_API_KEY"] = "internal-test-key"
os.environ["SUMIT_WEBHOOK_SECRET"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["LEADS_WEBHOOK_URL"] = ""
os.environ["WHATSAPP_VERIFY_TOKEN"] = "verify-me"

import uuid

import email_validator
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models import Lead, LeadStage, User, UserRole
from app.utils.auth import create_access_token
from main import app as fastapi_app

# Tests use reserved "@*.test" addresses; email-validator accepts them only in test-environment mode
email_validator.TEST_ENVIRONMENT = True


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite."""
    Session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(db_session):
    """FastAPI test client with get_db routed to the test session."""
    def _get_db():
        yield db_session

    fastapi_app.dependency_overrides[get_db] = _get_db
    # No context manager: the lifespan (scheduler, create_all on the real engine) stays off
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    """Factory fixture: persists a user with the given role."""
    def _make(role=UserRole.USER.value, **overrides):
        defaults = dict(
            id=str(uuid.uuid4()),
            email=f"{uuid.uuid4().hex[:8]}@salonos.test",
            full_name="Test User",
            role=role,
            is_active=True,
        )
        defaults.update(overrides)
        user = User(**defaults)
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture
def auth_headers():
    """Builds an Authorization header carrying a token for user."""
    def _headers(user, **claims):
        token = create_access_token({"sub": user.id, **claims})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def admin_user(make_user):
    return make_user(role=UserRole.ADMIN.value, full_name="Ada Admin")


@pytest.fixture
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


@pytest.fixture
def staff_headers(make_user, auth_headers):
    return auth_headers(make_user(role=UserRole.STAFF.value))


@pytest.fixture
def make_lead(db_session):
    """Factory fixture: persists a lead directly at the given stage."""
    def _make(stage=LeadStage.CTA_CLICKED.value, **overrides):
        defaults = dict(
            lead_id=str(uuid.uuid4()),
            source_page="/pricing",
            email="owner@salon.test",
            full_name="Dana Cohen",
            stage=stage,
            events=[],
        )
        defaults.update(overrides)
        lead = Lead(**defaults)
        db_session.add(lead)
        db_session.commit()
        return lead
    return _make
