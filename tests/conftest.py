import os

# Must be set before the application module is imported
os.environ["TESTING"] = "1"

import pytest
from fastapi.testclient import TestClient

from webschedulr.core.config import reload_settings
from webschedulr.core.database import db_manager, get_redis

SETTINGS_ENV_VARS = (
    "DB_TYPE", "DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME",
    "DB_FILENAME", "SECRET_KEY", "DEBUG", "INSTALL_REQUIRE_REINSTALL_FOR_EXISTING_SCHEMA",
)


class FakeRedis:
    """In-memory stand-in for the few Redis commands the rate limiter uses."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        self.data[key] = str(value)
        return True

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


@pytest.fixture(autouse=True)
def app_root(tmp_path, monkeypatch):
    """Point the settings artifact at a fresh directory for every test."""
    monkeypatch.setenv("ENV_FILE", str(tmp_path / ".env"))
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    db_manager.dispose()
    reload_settings()
    yield tmp_path
    db_manager.dispose()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(fake_redis):
    from webschedulr.main import app

    app.dependency_overrides[get_redis] = lambda: fake_redis
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client
    app.dependency_overrides.clear()


# Test data
admin_data = {
    "first_name": "Ada",
    "last_name": "Admin",
    "email": "a@b.com",
    "username": "a",
    "password": "longenough",
}

company_data = {"name": "Acme"}

sqlite_database = {"type": "sqlite", "filename": "test.db"}


def install_payload(**overrides):
    payload = {
        "admin": dict(admin_data),
        "company": dict(company_data),
        "database": dict(sqlite_database),
    }
    for key, value in overrides.items():
        payload[key] = value
    return payload


@pytest.fixture
def installed(client):
    """Run the installation wizard against a SQLite file."""
    response = client.post("/api/v1/installation/perform", json=install_payload())
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def admin_headers(client, installed):
    response = client.post(
        "/api/v1/auth/login",
        json={"username": admin_data["username"], "password": admin_data["password"]}
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
