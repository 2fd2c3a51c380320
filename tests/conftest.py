import os
from datetime import date, timedelta

import pytest

# Must be set before the app is imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.main import app  # noqa: E402
from app.core.database import Base, get_db, redis_client  # noqa: E402
from app import models  # noqa: E402,F401

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

PASSWORD = "TestPassword123"

@pytest.fixture(scope="function")
def test_db():
    Base.metadata.create_all(bind=engine)
    redis_client.flushall()
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

def register_and_login(client, email, role, full_name="Test User"):
    """Register a user through the API and return bearer auth headers."""
    response = client.post("/api/v1/auth/register", json={
        "email": email,
        "password": PASSWORD,
        "fullName": full_name,
        "role": role,
    })
    assert response.status_code == 201, response.text

    login_response = client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    assert login_response.status_code == 200, login_response.text
    token = login_response.json()["accessToken"]
    return {"Authorization": f"Bearer {token}"}

def next_weekday(weekday: int) -> date:
    """Next date strictly after today falling on ``weekday`` (Monday is 0)."""
    today = date.today()
    days_ahead = (weekday - today.weekday()) % 7 or 7
    return today + timedelta(days=days_ahead)

@pytest.fixture
def doctor_headers(client):
    return register_and_login(client, "doctor@example.com", "doctor", "Gregory House")

@pytest.fixture
def patient_headers(client):
    return register_and_login(client, "patient@example.com", "patient", "Jane Doe")

@pytest.fixture
def doctor_id(client, doctor_headers):
    response = client.get("/api/v1/doctors/me", headers=doctor_headers)
    assert response.status_code == 200
    return response.json()["id"]

@pytest.fixture
def monday_schedule(client, doctor_headers, doctor_id):
    """Doctor works Mondays 09:00-13:00."""
    response = client.post(
        f"/api/v1/doctors/{doctor_id}/schedule",
        json={"dayOfWeek": "Monday", "startTime": "09:00:00", "endTime": "13:00:00"},
        headers=doctor_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()

@pytest.fixture
def next_monday():
    return next_weekday(0)
