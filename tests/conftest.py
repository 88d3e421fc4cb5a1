import os
import sys
import tempfile
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# Add project root to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Set up environment variables before importing app
_DB_DIR = tempfile.mkdtemp(prefix="taskmanager-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-the-test-suite-only"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "AdminPassw0rd"
os.environ["TRUSTED_HOSTS"] = "*"

from taskmanager.main import app  # noqa: E402

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
DEFAULT_PASSWORD = "Passw0rd"


@pytest.fixture(scope="session")
def client():
    # Entering the context runs the lifespan: tables + seed admin
    with TestClient(app) as c:
        yield c


def unique_name(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, username=None, email=None, password=DEFAULT_PASSWORD, **extra):
    username = username or unique_name()
    email = email or f"{username}@example.com"
    payload = {
        "username": username,
        "email": email,
        "password": password,
        "confirmPassword": password,
        **extra,
    }
    return client.post("/api/auth/register", json=payload)


def login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def make_user(client):
    """Register a fresh user: dict with id, email, token, refresh_token, headers."""
    response = register(client)
    assert response.status_code == 200, response.text
    body = response.json()
    return {
        "id": body["user"]["id"],
        "username": body["user"]["username"],
        "email": body["user"]["email"],
        "token": body["token"],
        "refresh_token": body["refreshToken"],
        "headers": auth_headers(body["token"]),
    }


@pytest.fixture
def user(client):
    return make_user(client)


@pytest.fixture
def other_user(client):
    return make_user(client)


@pytest.fixture
def admin(client):
    response = login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    assert response.status_code == 200, response.text
    body = response.json()
    return {
        "id": body["user"]["id"],
        "token": body["token"],
        "headers": auth_headers(body["token"]),
    }


def today_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def days_from_today_iso(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


def create_task(client, headers, **fields):
    payload = {"title": "Write report", "description": "Quarterly numbers", "dueDate": days_from_today_iso(3)}
    payload.update(fields)
    return client.post("/api/tasks", json=payload, headers=headers)
