"""Shared fixtures: isolated data directory, fast hashing, short debounce."""

import time

import pytest
from fastapi.testclient import TestClient

from db.json_file import JsonFileStorage, StorageFault
from db.record_store import IndexedRecordStore
from settings.config import Settings

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-secret-123"


def wait_for(predicate, timeout: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def employee_data(n: int = 1, **overrides) -> dict:
    data = {
        "name": f"Employee {n}",
        "designation": "Engineer",
        "email": f"employee{n}@example.com",
        "contact": f"555-010{n}",
        "department": "Engineering",
        "joiningDate": f"2024-01-{n:02d}",
        "location": "Remote",
    }
    data.update(overrides)
    return data


@pytest.fixture
def app_settings(tmp_path, monkeypatch) -> Settings:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.delenv("EMPLOYEES_FILE", raising=False)
    monkeypatch.delenv("USERS_FILE", raising=False)
    monkeypatch.setenv("SAVE_DEBOUNCE_MS", "20")
    monkeypatch.setenv("SAVE_RETRY_BACKOFF_MS", "10")
    monkeypatch.setenv("PASSWORD_HASH_ROUNDS", "4")
    monkeypatch.setenv("ADMIN_USERNAME", ADMIN_USERNAME)
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    monkeypatch.setenv("SESSION_SECRET", "test-session-secret")
    monkeypatch.setenv("COOKIE_SECURE", "false")
    monkeypatch.setenv("AUTH_OVERRIDE_ENABLED", "false")
    monkeypatch.delenv("AUTH_OVERRIDE_PASSWORD", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)
    return Settings()


@pytest.fixture
def client(app_settings):
    from main import create_app

    with TestClient(create_app(app_settings)) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/admin/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture
def make_store(tmp_path):
    created = []

    def _make(storage=None, *, natural_key="email", order_field="joiningDate", **kwargs):
        storage = storage or JsonFileStorage(tmp_path / "employees.json")
        kwargs.setdefault("debounce_seconds", 0.02)
        kwargs.setdefault("retry_backoff_seconds", 0.01)
        store = IndexedRecordStore(storage, natural_key=natural_key, order_field=order_field, **kwargs)
        store.init()
        created.append(store)
        return store

    yield _make

    for store in created:
        try:
            store.close()
        except StorageFault:
            pass
