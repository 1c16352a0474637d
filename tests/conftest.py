"""Shared test configuration and fixtures for Fest Registry tests"""

import json
import logging
import os
import subprocess
import sys
import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from tests.config import test_config

# The application reads its configuration at import time
_tmp_dir = tempfile.mkdtemp(prefix="fest-registry-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_dir}/app.db"
os.environ["RAZORPAY_KEY_ID"] = test_config["razorpay_key_id"]
os.environ["RAZORPAY_KEY_SECRET"] = test_config["razorpay_key_secret"]
os.environ["ADMIN_EMAILS"] = test_config["admin_emails"]
os.environ["ADMIN_EMAIL_DOMAINS"] = test_config["admin_email_domains"]
os.environ["IDENTITY_ISSUER"] = "https://identity.test"
os.environ["IDENTITY_AUDIENCE"] = "fest-registry-test"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from fest_registry.auth.dependencies import get_current_user  # noqa: E402
from fest_registry.backends.payment_gateway import (  # noqa: E402
    RazorpayClient,
    get_payment_gateway,
)
from fest_registry.main import app  # noqa: E402
from fest_registry.models.database import build_engine, get_db  # noqa: E402
from fest_registry.models.user import User, UserRole  # noqa: E402
from fest_registry.services.booking import ContactInfo  # noqa: E402
from fest_registry.services.checkin_service import CheckInService  # noqa: E402
from fest_registry.services.event_service import (  # noqa: E402
    EventCreate,
    EventService,
)
from fest_registry.services.payment_service import PaymentService  # noqa: E402
from fest_registry.services.registration_service import (  # noqa: E402
    RegistrationService,
)
from fest_registry.services.team_service import TeamService  # noqa: E402
from fest_registry.services.user_service import UserService  # noqa: E402

logger = logging.getLogger(__name__)

PROJECT_DIR = Path(__file__).parent.parent


def _run_migrations(database_url: str):
    """Run Alembic migrations on the test database"""
    env = os.environ.copy()
    env["DATABASE_URL"] = database_url
    env["PYTHONPATH"] = os.pathsep.join(
        filter(None, [str(PROJECT_DIR / "src"), env.get("PYTHONPATH")])
    )

    result = subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "upgrade", "head"],
        cwd=PROJECT_DIR,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )
    if result.returncode != 0:
        logger.error(f"Alembic migration failed: {result.stderr}")
        raise RuntimeError(f"Failed to run migrations: {result.stderr}")
    logger.info("Database schema setup completed successfully")


@pytest.fixture(scope="session")
def database_url():
    """Migrated database for the test session (SQLite file or PostgreSQL)"""
    if test_config["database"] == "postgres":
        from testcontainers.postgres import PostgresContainer

        with PostgresContainer(test_config["postgres_image"]) as postgres:
            url = postgres.get_connection_url()
            _run_migrations(url)
            yield url
    else:
        url = f"sqlite:///{_tmp_dir}/fest.db"
        _run_migrations(url)
        yield url


@pytest.fixture(scope="session")
def engine(database_url):
    engine = build_engine(database_url)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def clean_tables(engine):
    """Start every test from empty tables"""
    yield
    with engine.begin() as connection:
        for table in reversed(SQLModel.metadata.sorted_tables):
            connection.execute(table.delete())


@pytest.fixture
def _db_session(engine):
    """Private DB session for fixtures only.

    Do not use this fixture directly in tests. Prefer the service fixtures
    below to avoid coupling tests to the session internals.
    """
    session = Session(engine)
    yield session
    session.close()


@pytest.fixture
def event_service(_db_session):
    return EventService(_db_session)


@pytest.fixture
def registration_service(_db_session):
    return RegistrationService(_db_session)


@pytest.fixture
def team_service(_db_session):
    return TeamService(_db_session)


@pytest.fixture
def checkin_service(_db_session):
    return CheckInService(_db_session)


@pytest.fixture
def user_service(_db_session):
    return UserService(
        _db_session,
        admin_emails=[test_config["admin_emails"]],
        admin_email_domains=[test_config["admin_email_domains"]],
    )


@pytest.fixture
def gateway_requests():
    """Order payloads received by the mocked gateway"""
    return []


@pytest.fixture
def gateway(gateway_requests):
    """Razorpay client whose HTTP calls are answered by a MockTransport"""

    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        gateway_requests.append(
            {"path": request.url.path, "auth": request.headers.get("authorization")}
            | payload
        )
        return httpx.Response(
            200,
            json={
                "id": f"order_test{len(gateway_requests)}",
                "entity": "order",
                "amount": payload["amount"],
                "currency": payload["currency"],
                "receipt": payload["receipt"],
                "status": "created",
            },
        )

    return RazorpayClient(test_config, transport=httpx.MockTransport(handler))


@pytest.fixture
def payment_service(_db_session, gateway):
    return PaymentService(_db_session, gateway, currency=test_config["payment_currency"])


@pytest.fixture
def make_event(event_service):
    """Factory creating events with sensible defaults"""

    def _make_event(**overrides):
        data = {
            "title": "Code Sprint",
            "description": "24 hour hackathon",
            "date": datetime(2026, 3, 14, 10, 0, tzinfo=timezone.utc),
            "location": "Main Auditorium",
            "max_participants": 10,
        }
        data.update(overrides)
        if data.get("is_paid") and "price" not in overrides:
            data["price"] = Decimal("500.00")
        return event_service.create_event(EventCreate(**data))

    return _make_event


@pytest.fixture
def contact():
    """Factory for registration contact details"""

    def _contact(name: str = "Asha Rao", **overrides):
        data = {
            "name": name,
            "email": f"{name.split()[0].lower()}@college.example.com",
            "phone": "+919800000000",
            "college": "City Engineering College",
            "student_id": "CEC-2041",
        }
        data.update(overrides)
        return ContactInfo(**data)

    return _contact


@pytest.fixture
def client(engine, gateway):
    """TestClient wired to the test database and the mocked gateway"""

    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def login():
    """Act as the given user in subsequent requests"""

    def _login(user_id: str, role: UserRole = UserRole.USER) -> User:
        user = User(
            id=user_id,
            email=f"{user_id}@college.example.com",
            name=user_id.title(),
            role=role,
        )
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _login
