"""API tests for services, trees, estimates and the provider dashboard."""

from __future__ import annotations

from service_catalog_api.app.core.sample_data import BASIC_TREE


def test_provider_creates_service_with_valid_tree(client, broadband_service) -> None:
    assert broadband_service["provider"] == "Acme Networks"
    assert broadband_service["serviceType"] == "broadband"
    assert broadband_service["status"] == "active"
    assert set(broadband_service["tree"]) >= {"root", "wired", "fiber_100"}


def test_malformed_tree_is_rejected_with_rule(client, provider_headers) -> None:
    tree = {
        "root": {"id": "root", "children": ["a"]},
        "a": {"id": "a", "children": ["root"], "data": {"unitOfMeasurement": ["month"]}},
    }
    response = client.post(
        "/api/v1/provider/services",
        json={"name": "Loop", "tree": tree},
        headers=provider_headers,
    )
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "MALFORMED_TREE"
    assert body["rule"] == "cycle"
    assert body["nodeId"] == "root"
    assert client.get("/api/v1/provider/all-services", headers=provider_headers).json()["services"] == []


def test_only_providers_manage_services(client, user_headers) -> None:
    response = client.post("/api/v1/provider/services", json={"name": "Nope"}, headers=user_headers)
    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_consumer_browses_active_services(client, user_headers, provider_headers, broadband_service) -> None:
    client.post("/api/v1/provider/services", json={"name": "Draft service"}, headers=provider_headers)

    listed = client.get("/api/v1/services/", headers=user_headers).json()["services"]
    assert [service["name"] for service in listed] == ["Broadband Internet Service"]

    available = client.get("/api/v1/user/available-services", headers=user_headers).json()["services"]
    assert [service["id"] for service in available] == [broadband_service["id"]]


def test_get_tree(client, user_headers, broadband_service) -> None:
    response = client.get(f"/api/v1/services/{broadband_service['id']}/tree", headers=user_headers)
    assert response.status_code == 200
    tree = response.json()["tree"]
    assert tree["fiber_100"]["data"]["unitOfMeasurement"] == ["Mbps", "month"]


def test_service_without_tree_has_no_tree_endpoint(client, user_headers, provider_headers) -> None:
    created = client.post("/api/v1/provider/services", json={"name": "Empty"}, headers=provider_headers)
    service_id = created.json()["service"]["id"]
    response = client.get(f"/api/v1/services/{service_id}/tree", headers=user_headers)
    assert response.status_code == 404
    assert client.get("/api/v1/services/9999", headers=user_headers).status_code == 404


def test_estimate_endpoint(client, user_headers, broadband_service) -> None:
    response = client.post(
        f"/api/v1/services/{broadband_service['id']}/estimate",
        json={
            "selections": [
                {"nodeId": "fiber_100", "quantity": 100, "unit": "Mbps"},
                {"nodeId": "fiber_100", "quantity": 1, "unit": "month"},
            ],
            "selectedPath": ["root", "wired", "fiber", "fiber_100"],
        },
        headers=user_headers,
    )
    assert response.status_code == 200
    estimate = response.json()["estimate"]
    assert estimate["total"] == 1500.0
    assert estimate["breakdown"][0] == {
        "nodeId": "fiber_100",
        "quantity": 100.0,
        "unit": "Mbps",
        "unitPrice": 10.0,
        "lineTotal": 1000.0,
    }


def test_estimate_rejects_unknown_node(client, user_headers, broadband_service) -> None:
    response = client.post(
        f"/api/v1/services/{broadband_service['id']}/estimate",
        json={"selections": [{"nodeId": "satellite", "quantity": 1, "unit": "month"}]},
        headers=user_headers,
    )
    assert response.status_code == 422
    assert response.json() == {
        "success": False,
        "error": "Node 'satellite' does not exist in the tree",
        "code": "UNKNOWN_NODE",
        "nodeId": "satellite",
    }


def test_estimate_rejects_oversized_quantity(client, user_headers, broadband_service) -> None:
    response = client.post(
        f"/api/v1/services/{broadband_service['id']}/estimate",
        json={"selections": [{"nodeId": "fiber_100", "quantity": 1e27, "unit": "Mbps"}]},
        headers=user_headers,
    )
    assert response.status_code == 422
    assert response.json()["code"] == "INVALID_QUANTITY"
    assert response.json()["nodeId"] == "fiber_100"


def test_resolve_path_endpoint(client, user_headers, broadband_service) -> None:
    url = f"/api/v1/services/{broadband_service['id']}/resolve-path"
    ok = client.post(url, json={"path": ["root", "wireless", "mobile", "mobile_5g"]}, headers=user_headers)
    assert ok.status_code == 200
    assert ok.json()["node"]["id"] == "mobile_5g"

    broken = client.post(url, json={"path": ["root", "wireless", "mobile", "fiber_100"]}, headers=user_headers)
    assert broken.status_code == 422
    body = broken.json()
    assert body["code"] == "DISCONNECTED_PATH"
    assert body["breakPoint"] == {"parent": "mobile", "child": "fiber_100", "index": 3}


def test_replace_tree(client, user_headers, provider_headers, broadband_service) -> None:
    url = f"/api/v1/provider/services/{broadband_service['id']}/tree"
    response = client.put(url, json={"tree": BASIC_TREE, "diagram": "<svg/>"}, headers=provider_headers)
    assert response.status_code == 200
    assert set(response.json()["service"]["tree"]) == set(BASIC_TREE)
    assert response.json()["service"]["diagram"] == "<svg/>"

    bad = client.put(url, json={"tree": {"root": {"children": []}}}, headers=provider_headers)
    assert bad.status_code == 422
    assert bad.json()["rule"] == "unpriceable_leaf"
    tree = client.get(f"/api/v1/services/{broadband_service['id']}/tree", headers=user_headers).json()["tree"]
    assert set(tree) == set(BASIC_TREE)


def test_provider_cannot_touch_other_providers_service(client, signup, broadband_service) -> None:
    other = signup("other@example.com", role="service_provider", name="Other")
    url = f"/api/v1/provider/services/{broadband_service['id']}"
    assert client.put(url, json={"name": "Mine now"}, headers=other).status_code == 404
    assert client.delete(url, headers=other).status_code == 404


def test_update_and_delete_service(client, provider_headers, broadband_service) -> None:
    url = f"/api/v1/provider/services/{broadband_service['id']}"
    updated = client.put(
        url,
        json={"description": "Faster", "documents": [{"name": "Terms", "url": "https://example.com/terms.pdf"}]},
        headers=provider_headers,
    )
    assert updated.status_code == 200
    service = updated.json()["service"]
    assert service["description"] == "Faster"
    assert service["name"] == "Broadband Internet Service"
    assert service["documents"][0]["name"] == "Terms"

    assert client.delete(url, headers=provider_headers).status_code == 200
    assert client.get("/api/v1/provider/all-services", headers=provider_headers).json()["services"] == []


def test_provider_dashboard(client, provider_headers, broadband_service) -> None:
    stats = client.get("/api/v1/provider/stats", headers=provider_headers).json()["stats"]
    assert stats[0] == {"label": "Total Services", "value": "1"}
    assert stats[2] == {"label": "Total Revenue", "value": "0.00"}

    recent = client.get("/api/v1/provider/recent-services", headers=provider_headers).json()["services"]
    assert recent[0]["id"] == broadband_service["id"]

    types = client.get("/api/v1/provider/service-types", headers=provider_headers).json()["types"]
    assert "broadband" in [service_type["name"] for service_type in types]


def test_update_company_info(client, provider_headers) -> None:
    response = client.put(
        "/api/v1/provider/company-info",
        json={"companyName": "Acme Fiber", "serviceTypes": ["broadband"], "website": "https://acme.example"},
        headers=provider_headers,
    )
    assert response.status_code == 200
    company = client.get("/api/v1/provider/company-info", headers=provider_headers).json()["company"]
    assert company["companyName"] == "Acme Fiber"
    assert company["serviceTypes"] == ["broadband"]
    assert company["businessLicense"] == ""
