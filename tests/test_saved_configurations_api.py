"""API tests for saved configurations and the consumer dashboard."""

from __future__ import annotations

import json

import pytest

from service_catalog_api.app.core.db import get_connection
from service_catalog_api.app.core.sample_data import BASIC_TREE

FIBER_SELECTION = [
    {"nodeId": "fiber_100", "quantity": 100, "unit": "Mbps"},
    {"nodeId": "fiber_100", "quantity": 1, "unit": "month"},
]
FIBER_PATH = ["root", "wired", "fiber", "fiber_100"]


@pytest.fixture
def save(client, user_headers, broadband_service):
    def _save(**overrides):
        payload = {
            "serviceId": broadband_service["id"],
            "name": "Home fiber",
            "selectedNodes": FIBER_SELECTION,
            "selectedPath": FIBER_PATH,
            **overrides,
        }
        return client.post("/api/v1/saved-configurations/", json=payload, headers=user_headers)

    return _save


def _set_status(client, headers, config_id, status):
    return client.put(f"/api/v1/saved-configurations/{config_id}/status", json={"status": status}, headers=headers)


def test_save_recomputes_total(save) -> None:
    response = save(totalEstimate=42)
    assert response.status_code == 201
    configuration = response.json()["configuration"]
    assert configuration["totalEstimate"] == 1500.0
    assert configuration["status"] == "saved"
    assert configuration["serviceName"] == "Broadband Internet Service"
    assert configuration["provider"] == "Acme Networks"
    assert configuration["selectedPath"] == FIBER_PATH
    assert [line["lineTotal"] for line in configuration["breakdown"]] == [1000.0, 500.0]


def test_stored_snapshot_shape(save) -> None:
    config_id = save().json()["configuration"]["id"]
    conn = get_connection()
    try:
        row = conn.execute("SELECT configuration FROM user_configurations WHERE id = ?", (config_id,)).fetchone()
    finally:
        conn.close()
    snapshot = json.loads(row["configuration"])
    assert set(snapshot) == {"selectedNodes", "selectedPath", "totalEstimate", "breakdown", "unitCosts", "timestamp"}
    assert snapshot["unitCosts"] == {"Mbps": "10.0", "month": "500.0"}
    assert snapshot["totalEstimate"] == "1500.00"
    assert snapshot["selectedNodes"][0] == {"nodeId": "fiber_100", "quantity": "100", "unit": "Mbps"}


def test_invalid_selection_is_not_saved(client, user_headers, save) -> None:
    response = save(selectedNodes=[{"nodeId": "fiber_100", "quantity": 0, "unit": "Mbps"}])
    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_QUANTITY"

    response = save(selectedPath=["root", "wireless", "mobile", "fiber_100"])
    assert response.status_code == 422
    assert response.json()["code"] == "DISCONNECTED_PATH"

    assert client.get("/api/v1/saved-configurations/", headers=user_headers).json()["configurations"] == []


def test_high_precision_quantity_survives_storage(client, user_headers, save) -> None:
    quantity = "0.100499999999999999999"
    response = save(selectedNodes=[{"nodeId": "fiber_100", "quantity": quantity, "unit": "Mbps"}])
    assert response.status_code == 201
    config_id = response.json()["configuration"]["id"]
    assert response.json()["configuration"]["totalEstimate"] == 1.0

    conn = get_connection()
    try:
        row = conn.execute("SELECT configuration FROM user_configurations WHERE id = ?", (config_id,)).fetchone()
    finally:
        conn.close()
    assert json.loads(row["configuration"])["selectedNodes"][0]["quantity"] == quantity

    verification = client.get(f"/api/v1/saved-configurations/{config_id}/verify", headers=user_headers).json()
    assert verification["verification"]["matches"] is True
    assert verification["verification"]["recomputedTotal"] == 1.0


def test_oversized_quantity_is_rejected(client, user_headers, save) -> None:
    response = save(selectedNodes=[{"nodeId": "fiber_100", "quantity": 1e27, "unit": "Mbps"}])
    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_QUANTITY"
    assert client.get("/api/v1/saved-configurations/", headers=user_headers).json()["configurations"] == []


def test_save_for_unknown_service(save) -> None:
    assert save(serviceId=9999).status_code == 404


def test_snapshot_survives_tree_replacement(client, user_headers, provider_headers, broadband_service, save) -> None:
    config_id = save().json()["configuration"]["id"]
    client.put(
        f"/api/v1/provider/services/{broadband_service['id']}/tree",
        json={"tree": BASIC_TREE},
        headers=provider_headers,
    )

    stored = client.get(f"/api/v1/saved-configurations/{config_id}", headers=user_headers).json()["configuration"]
    assert stored["selectedNodes"][0]["nodeId"] == "fiber_100"
    assert stored["totalEstimate"] == 1500.0

    verification = client.get(f"/api/v1/saved-configurations/{config_id}/verify", headers=user_headers).json()
    assert verification["verification"] == {
        "id": config_id,
        "storedTotal": 1500.0,
        "recomputedTotal": 1500.0,
        "matches": True,
    }


def test_configurations_are_private(client, signup, save) -> None:
    config_id = save().json()["configuration"]["id"]
    stranger = signup("stranger@example.com")
    assert client.get(f"/api/v1/saved-configurations/{config_id}", headers=stranger).status_code == 404
    assert client.delete(f"/api/v1/saved-configurations/{config_id}", headers=stranger).status_code == 404
    assert client.get("/api/v1/saved-configurations/", headers=stranger).json()["configurations"] == []


def test_update_rename_and_reselect(client, user_headers, save) -> None:
    config_id = save().json()["configuration"]["id"]
    url = f"/api/v1/saved-configurations/{config_id}"

    renamed = client.put(url, json={"name": "Office fiber"}, headers=user_headers).json()["configuration"]
    assert renamed["name"] == "Office fiber"
    assert renamed["totalEstimate"] == 1500.0

    reselected = client.put(
        url,
        json={"selectedNodes": [{"nodeId": "cable_50", "quantity": 50, "unit": "Mbps"}], "selectedPath": []},
        headers=user_headers,
    ).json()["configuration"]
    assert reselected["totalEstimate"] == 500.0
    assert reselected["name"] == "Office fiber"


def test_lifecycle_through_api(client, user_headers, save, broadband_service, provider_headers) -> None:
    config_id = save(status="draft").json()["configuration"]["id"]

    refused = _set_status(client, user_headers, config_id, "active")
    assert refused.status_code == 422
    assert refused.json()["code"] == "INVALID_TRANSITION"

    assert _set_status(client, user_headers, config_id, "saved").json()["configuration"]["status"] == "saved"
    assert _set_status(client, user_headers, config_id, "active").json()["configuration"]["status"] == "active"
    assert _set_status(client, user_headers, config_id, "active").status_code == 200
    assert _set_status(client, user_headers, config_id, "draft").status_code == 422

    locked = client.put(
        f"/api/v1/saved-configurations/{config_id}",
        json={"selectedNodes": [{"nodeId": "cable_50", "quantity": 50, "unit": "Mbps"}]},
        headers=user_headers,
    )
    assert locked.status_code == 422
    assert locked.json()["code"] == "CONFIGURATION_LOCKED"

    stats = client.get("/api/v1/provider/stats", headers=provider_headers).json()["stats"]
    assert stats[1] == {"label": "Total Users", "value": "1"}
    assert stats[2] == {"label": "Total Revenue", "value": "1500.00"}

    status = client.get("/api/v1/user/service-status", headers=user_headers).json()["services"]
    assert [service["id"] for service in status] == [broadband_service["id"]]

    assert client.delete(f"/api/v1/saved-configurations/{config_id}", headers=user_headers).status_code == 200
    stats = client.get("/api/v1/provider/stats", headers=provider_headers).json()["stats"]
    assert stats[2] == {"label": "Total Revenue", "value": "0.00"}


def test_consumer_dashboard(client, user_headers, save, broadband_service) -> None:
    save(status="draft")
    catalogue = client.get("/api/v1/user/catalogue", headers=user_headers).json()["items"]
    assert catalogue[0]["serviceName"] == "Broadband Internet Service"
    assert catalogue[0]["progress"] == 50

    recent = client.get("/api/v1/user/recent-services", headers=user_headers).json()["services"]
    assert recent[0]["id"] == broadband_service["id"]
    assert recent[0]["provider"] == "Acme Networks"


def test_profile(client, user_headers) -> None:
    assert client.post("/api/v1/user/profile", json={}, headers=user_headers).status_code == 400
    response = client.post(
        "/api/v1/user/profile", json={"phone": "+1 555 0100", "companyName": "Home"}, headers=user_headers
    )
    assert response.status_code == 200
    profile = client.get("/api/v1/user/profile", headers=user_headers).json()["user"]
    assert profile["phone"] == "+1 555 0100"
    assert profile["company_name"] == "Home"
