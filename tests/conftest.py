import pytest
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("BOOTSTRAP_ADMIN_EMAIL", None)

from sirtis.database import Base, get_db
from sirtis.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()

@pytest.fixture(scope="function")
def admin_user(db_session):
    """Create a default HR Admin user for tests."""
    from sirtis.models.user import User, UserRole
    from sirtis.services import auth as auth_service

    user = User(
        email="admin@sirtis.org",
        hashed_password=auth_service.get_password_hash("AdminPassword123!"),
        role=UserRole.HR_ADMIN,
        is_active=True,
        first_name="System",
        last_name="Admin",
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def staff_user(db_session):
    """A regular employee account without administrative rights."""
    from sirtis.models.user import User, UserRole
    from sirtis.services import auth as auth_service

    user = User(
        email="staff@sirtis.org",
        hashed_password=auth_service.get_password_hash("StaffPassword123!"),
        role=UserRole.EMPLOYEE,
        is_active=True,
        first_name="Sam",
        last_name="Staff",
    )
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens."""
    from sirtis.services.auth import create_access_token

    def _get_token(user):
        return create_access_token(data={
            "sub": user.email,
            "role": user.role.value,
            "type": "access"
        })
    return _get_token

@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _auth_headers

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
def org_chart(db_session):
    """
    Finance (top-level) with sub-unit Payroll, and HR (top-level).
    Jane is a Finance user; Bob's employee record points at Payroll by id only.
    """
    from sirtis.models.department import Department
    from sirtis.models.employee import Employee
    from sirtis.models.user import User, UserRole

    finance = Department(name="Finance", code="FIN")
    hr = Department(name="HR", code="HR")
    db_session.add_all([finance, hr])
    db_session.flush()
    payroll = Department(name="Payroll", code="PAY", parent_id=finance.id)
    db_session.add(payroll)
    db_session.flush()

    jane = User(
        email="jane@org.example", hashed_password="x", first_name="Jane", last_name="Doe",
        department="Finance", role=UserRole.EMPLOYEE,
    )
    bob = User(
        email="bob@org.example", hashed_password="x", first_name="Bob", last_name="Stone",
        department=None, role=UserRole.EMPLOYEE,
    )
    db_session.add_all([jane, bob])
    db_session.flush()

    db_session.add(Employee(
        user_id=bob.id, email="bob@org.example", first_name="Bob", last_name="Stone",
        department=None, department_id=payroll.id,
    ))
    db_session.commit()
    return {"finance": finance, "hr": hr, "payroll": payroll, "jane": jane, "bob": bob}
