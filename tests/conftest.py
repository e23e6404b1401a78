"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Generator
from datetime import date
from uuid import uuid4

# Set test environment before importing the app
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["DEBUG"] = "false"
os.environ["ENVIRONMENT"] = "development"
os.environ["MAINTENANCE_SCHEDULER_ENABLED"] = "false"
os.environ["CRON_SECRET_KEY"] = ""
os.environ["OPENWEATHERMAP_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from myhive.db.database import Database
from myhive.db.models import (
    Base,
    FrequencyType,
    Hive,
    MaintenanceSchedule,
    MaintenanceTemplate,
    Organisation,
    User,
    UserRole,
)

# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def database(db: Session) -> Database:
    """Store handle bound to the test engine, as the generator receives it."""
    return Database(engine)


@pytest.fixture(scope="function")
def client(db: Session, database: Database) -> Generator[TestClient, None, None]:
    """Create a test client with database overrides."""
    # Import here to ensure env vars are set
    from myhive.db.database import get_database, get_db
    from myhive.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_database] = lambda: database
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def test_org(db: Session) -> Organisation:
    """Create a test organisation."""
    org = Organisation(id=str(uuid4()), name="Meadow Apiaries")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


@pytest.fixture
def other_org(db: Session) -> Organisation:
    """Create a second organisation for tenant isolation tests."""
    org = Organisation(id=str(uuid4()), name="Hilltop Honey")
    db.add(org)
    db.commit()
    db.refresh(org)
    return org


def _make_user(db: Session, org: Organisation, role: UserRole, email: str, name: str) -> User:
    user = User(
        id=str(uuid4()),
        org_id=org.id,
        email=email,
        name=name,
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_admin(db: Session, test_org: Organisation) -> User:
    """Create an admin user."""
    return _make_user(db, test_org, UserRole.ADMIN, "admin@example.com", "Ada Admin")


@pytest.fixture
def test_manager(db: Session, test_org: Organisation) -> User:
    """Create a manager user."""
    return _make_user(db, test_org, UserRole.MANAGER, "manager@example.com", "Max Manager")


@pytest.fixture
def test_inspector(db: Session, test_org: Organisation) -> User:
    """Create an inspector user."""
    return _make_user(db, test_org, UserRole.INSPECTOR, "inspector@example.com", "Ivy Inspector")


@pytest.fixture
def test_viewer(db: Session, test_org: Organisation) -> User:
    """Create a read-only user."""
    return _make_user(db, test_org, UserRole.VIEWER, "viewer@example.com", "Vic Viewer")


@pytest.fixture
def other_inspector(db: Session, other_org: Organisation) -> User:
    """Create an inspector in the second organisation."""
    return _make_user(db, other_org, UserRole.INSPECTOR, "inspector@hilltop.example", "Otto Other")


@pytest.fixture
def test_hive(db: Session, test_org: Organisation) -> Hive:
    """Create a hive in the test organisation."""
    hive = Hive(id=str(uuid4()), org_id=test_org.id, public_id="H-001", label="Hive One")
    db.add(hive)
    db.commit()
    db.refresh(hive)
    return hive


@pytest.fixture
def other_hive(db: Session, other_org: Organisation) -> Hive:
    """Create a hive in the second organisation."""
    hive = Hive(id=str(uuid4()), org_id=other_org.id, public_id="H-001", label="Hilltop Hive")
    db.add(hive)
    db.commit()
    db.refresh(hive)
    return hive


@pytest.fixture
def test_template(db: Session, test_org: Organisation) -> MaintenanceTemplate:
    """Create a maintenance template."""
    template = MaintenanceTemplate(
        id=str(uuid4()),
        org_id=test_org.id,
        name="Varroa treatment",
        task_type="treatment",
        instructions="Apply oxalic acid strips",
        checklist_items=["Check mite drop", "Insert strips"],
    )
    db.add(template)
    db.commit()
    db.refresh(template)
    return template


@pytest.fixture
def test_schedule(
    db: Session, test_org: Organisation, test_hive: Hive, test_template: MaintenanceTemplate
) -> MaintenanceSchedule:
    """Create a monthly schedule using the test template."""
    schedule = MaintenanceSchedule(
        id=str(uuid4()),
        org_id=test_org.id,
        template_id=test_template.id,
        hive_id=test_hive.id,
        name="Monthly varroa treatment",
        frequency_type=FrequencyType.MONTHLY,
        frequency_value=1,
        next_due_date=date(2024, 6, 1),
        is_active=True,
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule


@pytest.fixture
def login(client: TestClient) -> Generator[Callable[[User], TestClient], None, None]:
    """Return a function that authenticates the client as a given user."""
    from myhive.dependencies import get_current_user
    from myhive.main import app

    def _login(user: User) -> TestClient:
        app.dependency_overrides[get_current_user] = lambda: user
        return client

    yield _login
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def admin_client(login, test_admin: User) -> TestClient:
    """Create an admin-authenticated test client."""
    return login(test_admin)


@pytest.fixture
def manager_client(login, test_manager: User) -> TestClient:
    """Create a manager-authenticated test client."""
    return login(test_manager)


@pytest.fixture
def inspector_client(login, test_inspector: User) -> TestClient:
    """Create an inspector-authenticated test client."""
    return login(test_inspector)


@pytest.fixture
def viewer_client(login, test_viewer: User) -> TestClient:
    """Create a viewer-authenticated test client."""
    return login(test_viewer)
