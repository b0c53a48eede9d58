import pytest
import os
from datetime import date
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_PER_MINUTE"] = "1000"

from leavedesk.database import Base, build_engine, get_db
from leavedesk.main import app
from leavedesk.models.leave_request import LeaveRequest, LeaveStatus
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = build_engine(SQLALCHEMY_DATABASE_URL, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """
    Fresh schema per test. Services commit for real, so the tables are
    dropped afterwards instead of rolling back an outer transaction.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def second_session(db_session):
    """A second, independent session on the same database, for concurrent-writer tests."""
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

@pytest.fixture(scope="function")
def make_request():
    """Transient LeaveRequest with every field the workflow reads set explicitly."""
    def _make(**overrides):
        fields = dict(
            id="req-1",
            employee_id="emp-1",
            department_id="dept-eng",
            leave_type="Annual",
            leave_category="Paid",
            start_date=date(2024, 3, 4),
            end_date=date(2024, 3, 8),
            total_days=5,
            reason="Family trip",
            status=LeaveStatus.PENDING.value,
            balance_before=None,
            balance_after=None,
            balance_deducted=False,
            is_emergency=False,
        )
        fields.update(overrides)
        return LeaveRequest(**fields)
    return _make

@pytest.fixture(scope="function")
def leave_payload():
    """Builder for POST bodies of a leave request."""
    def _payload(**overrides):
        body = {
            "employee_id": "emp-1",
            "department_id": "dept-eng",
            "user_name": "Amal Haddad",
            "department_name": "Engineering",
            "leave_type": "Annual",
            "start_date": "2024-03-04",
            "end_date": "2024-03-08",
            "reason": "Family trip",
        }
        body.update(overrides)
        return body
    return _payload
