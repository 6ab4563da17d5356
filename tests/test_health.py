from fastapi.testclient import TestClient


def test_health_endpoint_returns_expected_shape(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "Standup Coordination API"
    assert data["store"] == "memory"
    assert "timestamp" in data
