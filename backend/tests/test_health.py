import pytest
from fastapi.testclient import TestClient

from streampromo.core.dependencies import get_store
from streampromo.core.errors import StoreError
from streampromo.main import app


def test_healthcheck(client: TestClient) -> None:
    response = client.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_readiness(client: TestClient) -> None:
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_readiness_reports_unreachable_store(client: TestClient) -> None:
    class _DownStore:
        async def ping(self, timeout: float | None = None) -> None:
            raise StoreError("connection refused")

    app.dependency_overrides[get_store] = lambda: _DownStore()
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


def test_request_id_header(client: TestClient) -> None:
    response = client.get("/api/v1/health")
    assert response.headers.get("X-Request-ID")


def test_request_id_is_propagated(client: TestClient) -> None:
    response = client.get("/api/v1/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


@pytest.mark.parametrize("path", ["/api/v1/gifts", "/api/v1/discounts", "/api/v1/streams"])
def test_empty_listings(client: TestClient, path: str) -> None:
    body = client.get(path).json()
    assert body["status"] == 200
    assert body["data"] == []
