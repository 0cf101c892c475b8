"""Health endpoint tests."""

from pathlib import Path

from httpx import ASGITransport, AsyncClient

from stockledger.api.main import app


class TestHealth:
    async def test_health(self):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["uptime_seconds"] >= 0

    async def test_root_health(self):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_db_health_reports_schema_version(self, sqlite_db: Path):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/health/db")
        assert response.status_code == 200
        body = response.json()
        assert body["database"] == "sqlite"
        assert body["schema_version"] == "002"

    async def test_request_id_is_echoed(self):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"
        assert response.headers["X-Response-Time"].endswith("ms")
