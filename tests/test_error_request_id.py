"""Tests for request_id in error responses."""

import pytest
from fastapi.testclient import TestClient

from src.automation.main import create_app

pytestmark = pytest.mark.unit


@pytest.fixture
def client() -> TestClient:
    """Test client fixture."""
    app = create_app()
    return TestClient(app)


def test_http_exception_includes_request_id(client: TestClient) -> None:
    """HTTPException responses include request_id."""
    response = client.get("/api/v1/nonexistent-endpoint")

    assert response.status_code == 404
    data = response.json()
    assert "request_id" in data, "request_id not found in error response"
    assert "detail" in data, "detail not found in error response"
    assert isinstance(data["request_id"], str), "request_id is not a string"


def test_bad_request_includes_request_id(client: TestClient) -> None:
    """Missing X-Tenant-ID gives a 400 that still carries request_id."""
    response = client.get("/api/v1/executions")

    assert response.status_code == 400
    data = response.json()
    assert "request_id" in data, "request_id not found in 400 response"
    assert data["detail"] == "X-Tenant-ID header is required"


def test_request_id_echoes_incoming_header(client: TestClient) -> None:
    """A caller-supplied X-Request-ID is reused in the error body and response header."""
    request_id = "4f1c2a3b-5d6e-4f70-8a9b-0c1d2e3f4a5b"

    response = client.get("/api/v1/executions", headers={"X-Request-ID": request_id})

    assert response.json()["request_id"] == request_id
    assert response.headers["X-Request-ID"] == request_id


def test_different_requests_have_different_ids(client: TestClient) -> None:
    """Different requests get different request IDs."""
    data1 = client.get("/api/v1/endpoint1").json()
    data2 = client.get("/api/v1/endpoint2").json()

    assert data1["request_id"] != data2["request_id"], "Different requests have same request_id"
