"""Pytest fixtures."""

import os
import uuid

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SEED_CATALOG"] = "true"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from whitebox.core.security import issue_token
from whitebox.db.base import Base
from whitebox.db.session import get_db
from whitebox.main import app
from whitebox.models import Organization
from whitebox.schemas.report import ReportCreate
from whitebox.services.access_control import Actor, Role
from whitebox.services.auth_service import create_organization, create_user
from whitebox.services.catalog_seed import seed_catalog
from whitebox.services.department_service import department_ids_for_user
from whitebox.services.report_service import create_report
from whitebox.services.status_catalog import load_catalog

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def unique() -> str:
    return uuid.uuid4().hex[:8]


@pytest.fixture(scope="session")
def setup_db():
    """Create tables and load the default catalog once for the test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        seed_catalog(db)
        load_catalog(db)
    finally:
        db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(setup_db):
    """Test client with overridden DB."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_org(db):
    def _make(name: str | None = None) -> Organization:
        return create_organization(db, name or f"Org {unique()}")

    return _make


@pytest.fixture
def make_user(db):
    """Create a user directly through the service layer. Password is always 'pass'."""

    def _make(role: Role = Role.REPORTER, organization_id: int | None = None, department_scoped: bool = False):
        return create_user(
            db,
            f"{role.value}_{unique()}@test.com",
            "pass",
            role=role,
            full_name=f"{role.value} user",
            organization_id=organization_id,
            department_scoped=department_scoped,
        )

    return _make


@pytest.fixture
def actor_for(db):
    def _actor(user) -> Actor:
        return Actor.from_user(user, department_ids_for_user(db, user.id))

    return _actor


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(role=Role.ADMINISTRATOR)


@pytest.fixture
def auth_headers():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {issue_token(user.email, user.role)}"}

    return _headers


@pytest.fixture
def make_report(db):
    """File a report through the intake service."""

    def _make(org_id: int, actor: Actor | None = None, **fields):
        payload = {
            "reported_org_id": org_id,
            "title": fields.pop("title", "Unpaid overtime"),
            "description": fields.pop("description", "Workers are not paid for overtime hours."),
        }
        payload.update(fields)
        return create_report(db, ReportCreate(**payload), actor)

    return _make
