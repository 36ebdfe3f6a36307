import pytest

from designhub.core.errors import StorageUnavailable
from designhub.core.db import get_db
from designhub.main import app


@pytest.mark.asyncio
async def test_health(client):
    r = await client.get("/v1/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "service": "designhub-api"}


@pytest.mark.asyncio
async def test_ready_with_database(client):
    r = await client.get("/v1/health/ready")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"


@pytest.mark.asyncio
async def test_ready_reports_storage_outage(client):
    async def _down():
        raise StorageUnavailable("readiness probe failed: storage unavailable")
        yield  # pragma: no cover

    app.dependency_overrides[get_db] = _down
    r = await client.get("/v1/health/ready")
    assert r.status_code == 503
    assert r.json()["code"] == "storage_unavailable"
