"""Integration tests for service-level endpoints"""
import pytest
from httpx import AsyncClient


class TestServiceEndpoints:
    """Tests for banner, health and Circle configuration"""

    @pytest.mark.asyncio
    async def test_root(self, client: AsyncClient):
        response = await client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "BorderHop Backend API"
        assert data["endpoints"]["health"] == "/health"

    @pytest.mark.asyncio
    async def test_health_without_database(self, client: AsyncClient):
        """The app runs on in-memory storage until startup connects a database"""
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "disconnected"
        assert data["storage"] == "memory"
        assert data["chains"] == ["ethereum", "base", "arbitrum"]

    @pytest.mark.asyncio
    async def test_circle_status(self, client: AsyncClient):
        response = await client.get("/api/circle/status")
        assert response.status_code == 200
        data = response.json()
        assert data["environment"] == "testnet"
        assert {c["name"]: c["domain"] for c in data["supportedChains"]} == {
            "ethereum": 0, "base": 6, "arbitrum": 3,
        }

    @pytest.mark.asyncio
    async def test_unknown_route(self, client: AsyncClient):
        response = await client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}

