# tests/routes/test_main.py
"""
Tests for root, health, metrics and the problem-JSON error shape.
"""

from fastapi.testclient import TestClient


def test_root(client: TestClient):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["version"]
    assert body["docs"] == "/docs"
    assert "auth" in body["endpoints"]


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["service"] == "servicehub-api"
    assert body["timestamp"]


def test_process_time_header(client: TestClient):
    response = client.get("/")

    assert "x-process-time" in response.headers


def test_prometheus_metrics(client: TestClient):
    client.get("/")

    response = client.get("/metrics/prometheus")

    assert response.status_code == 200
    assert "servicehub_http_requests_total" in response.text


def test_not_found_is_problem_json(client: TestClient):
    response = client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == 404
    assert body["title"] == "Not Found"
    assert body["instance"] == "/api/v1/does-not-exist"


def test_validation_error_is_400(client: TestClient):
    response = client.post("/api/v1/auth/login", json={"email": "not-an-email"})

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["errors"]
