import os
import sys
from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

sys.path.append(str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")

from app.db.base import Base
import app.db.models  # noqa: F401
from app.db.session import get_db
from app.main import app
from app.core.rate_limiter import rate_limiter

TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

STAFF_PASSWORD = "StrongPass123"
WEEKDAY_HOURS = [
    {"day_of_week": day, "start_time": "09:00", "end_time": "17:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
]


@pytest.fixture(autouse=True)
def reset_database() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    rate_limiter.reset()


@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client() -> TestClient:
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def register_staff(client) -> Callable[..., dict[str, str]]:
    """Register a tenant with its staff account and return bearer headers."""

    def _register(email: str = "owner@example.com", tenant_name: str = "Clinic", **tenant_fields) -> dict[str, str]:
        payload = {"email": email, "password": STAFF_PASSWORD, "tenant_name": tenant_name, **tenant_fields}
        registered = client.post("/auth/register", json=payload)
        assert registered.status_code == 201, registered.text
        login = client.post("/auth/login", json={"email": email, "password": STAFF_PASSWORD})
        assert login.status_code == 200, login.text
        return {"Authorization": f"Bearer {login.json()['access_token']}"}

    return _register


@pytest.fixture()
def staff_headers(register_staff) -> dict[str, str]:
    return register_staff()


@pytest.fixture()
def make_resource(client) -> Callable[..., dict]:
    def _make(headers: dict[str, str], name: str = "Dr. Ada", sort_order: int = 0, hours=None) -> dict:
        created = client.post("/resources", headers=headers, json={"name": name, "sort_order": sort_order})
        assert created.status_code == 201, created.text
        resource = created.json()
        availability = client.put(
            f"/resources/{resource['id']}/availability",
            headers=headers,
            json={"windows": WEEKDAY_HOURS if hours is None else hours},
        )
        assert availability.status_code == 200, availability.text
        return resource

    return _make


@pytest.fixture()
def make_service(client) -> Callable[..., dict]:
    def _make(headers: dict[str, str], resource_ids: list[int], duration_minutes: int = 30, **fields) -> dict:
        created = client.post(
            "/services",
            headers=headers,
            json={"name": "Consultation", "duration_minutes": duration_minutes, "resource_ids": resource_ids, **fields},
        )
        assert created.status_code == 201, created.text
        return created.json()

    return _make
