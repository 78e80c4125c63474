import asyncio
import os

# Settings are read from the environment; these must be in place before the app is imported.
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("AUTO_SEED", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from factory_kpi.api.main import app
from factory_kpi.repositories.storage import storage_manager

ADMIN_CREDENTIALS = {"username": "admin", "password": "admin123"}


@pytest.fixture(autouse=True)
def _isolated_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("ATTACHMENTS_DIR", str(tmp_path / "attachments"))
    asyncio.run(storage_manager.reset())
    yield
    asyncio.run(storage_manager.reset())


@pytest.fixture
def client():
    """Anonymous client; entering it runs startup (backend selection and seeding)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Return a factory producing clients signed in as the given user."""

    def _login(username: str = "admin", password: str = "admin123") -> TestClient:
        session = TestClient(app)
        response = session.post("/api/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return session

    return _login


@pytest.fixture
def admin(login) -> TestClient:
    return login(**ADMIN_CREDENTIALS)


@pytest.fixture
def manager(login) -> TestClient:
    return login("safety1", "safety123")


@pytest.fixture
def admin_id(admin) -> str:
    return admin.get("/api/auth/me").json()["user"]["id"]
