"""Shared fixtures: a fresh SQLite database per test and API helpers."""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient

from service_catalog_api.app.core.config import settings
from service_catalog_api.app.core.db import init_db
from service_catalog_api.app.core.sample_data import BROADBAND_TREE
from service_catalog_api.app.main import app


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "catalog.db"))
    monkeypatch.setattr(settings, "strict_unit_pricing", False)
    init_db()
    return tmp_path / "catalog.db"


@pytest.fixture
def client() -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def broadband_tree() -> Dict[str, Any]:
    return copy.deepcopy(BROADBAND_TREE)


@pytest.fixture
def signup(client: TestClient) -> Callable[..., Dict[str, str]]:
    """Register an account and return ``Authorization`` headers for it."""

    def _signup(email: str, role: str = "user", name: str = "Test User", password: str = "secret123", **extra):
        response = client.post(
            "/api/v1/auth/signup",
            json={"name": name, "email": email, "password": password, "role": role, **extra},
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _signup


@pytest.fixture
def provider_headers(signup) -> Dict[str, str]:
    return signup("provider@example.com", role="service_provider", name="Acme", company_name="Acme Networks")


@pytest.fixture
def user_headers(signup) -> Dict[str, str]:
    return signup("consumer@example.com")


@pytest.fixture
def admin_headers(signup) -> Dict[str, str]:
    return signup("admin@example.com", role="admin", name="Admin")


@pytest.fixture
def broadband_service(client: TestClient, provider_headers, broadband_tree) -> Dict[str, Any]:
    """An active broadband service owned by ``provider_headers``."""
    response = client.post(
        "/api/v1/provider/services",
        json={
            "name": "Broadband Internet Service",
            "description": "High-speed internet",
            "serviceType": "broadband",
            "tree": broadband_tree,
            "status": "active",
        },
        headers=provider_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["service"]
