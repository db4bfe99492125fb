"""Integration tests for analytics endpoints"""
import pytest
from httpx import AsyncClient


class TestDashboard:
    """Tests for the stored-transfer dashboard"""

    @pytest.mark.asyncio
    async def test_empty_dashboard(self, client: AsyncClient):
        response = await client.get("/api/analytics/dashboard")
        assert response.status_code == 200
        overview = response.json()["dashboard"]["overview"]
        assert overview["totalTransfers"] == 0
        assert overview["savingsPercentage"] == "0%"

    @pytest.mark.asyncio
    async def test_dashboard_reflects_transfers(self, client: AsyncClient, transfer_payload):
        for amount, destination in [(400, "base"), (600, "arbitrum")]:
            transfer_payload["amount"] = amount
            transfer_payload["destinationChain"] = destination
            response = await client.post("/api/remittance/transfer", json=transfer_payload)
            assert response.status_code == 200

        dashboard = (await client.get("/api/analytics/dashboard")).json()["dashboard"]
        assert dashboard["overview"]["totalTransfers"] == 2
        assert dashboard["overview"]["totalVolume"] == "$1,000"
        assert dashboard["overview"]["averageTransferSize"] == "$500.00"
        assert dashboard["chainDistribution"] == {"base": 1, "arbitrum": 1}
        assert dashboard["intentDistribution"] == {"standard": 2}
        assert len(dashboard["recentActivity"]) == 2


class TestStatsTracker:
    """Tests for the update-stats counters"""

    @pytest.mark.asyncio
    async def test_update_stats(self, client: AsyncClient):
        response = await client.post("/api/analytics/update-stats", json={
            "amount": 500,
            "sourceChain": "ethereum",
            "destinationChain": "base",
            "intent": "maximize_yield",
            "feesSaved": 32,
        })
        assert response.status_code == 200
        stats = response.json()["currentStats"]
        assert stats["totalTransfers"] == 1
        assert stats["transfersByChain"]["base"] == 1
        assert stats["transfersByIntent"]["maximize_yield"] == 1

        realtime = (await client.get("/api/analytics/realtime")).json()["realtime"]
        assert realtime["liveMetrics"]["transfersToday"] == 1
        assert realtime["liveMetrics"]["volumeToday"] == 500

    @pytest.mark.asyncio
    async def test_update_stats_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/analytics/update-stats", json={"amount": 5})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_savings_comparison(self, client: AsyncClient):
        await client.post("/api/analytics/update-stats", json={
            "amount": 1000, "sourceChain": "ethereum", "destinationChain": "arbitrum",
        })
        comparison = (await client.get("/api/analytics/savings-comparison")).json()["comparison"]
        assert comparison["savings"]["amount"] == pytest.approx(64.0)

    @pytest.mark.asyncio
    async def test_savings_comparison_without_transfers(self, client: AsyncClient):
        comparison = (await client.get("/api/analytics/savings-comparison")).json()["comparison"]
        assert comparison["savings"]["percentage"] == 0

    @pytest.mark.asyncio
    async def test_performance_and_insights(self, client: AsyncClient):
        await client.post("/api/analytics/update-stats", json={
            "amount": 50, "sourceChain": "base", "destinationChain": "arbitrum", "intent": "minimize_fees",
        })
        performance = (await client.get("/api/analytics/performance")).json()["performance"]
        assert performance["chains"]["mostPopular"] == "arbitrum"

        insights = (await client.get("/api/analytics/insights")).json()["insights"]
        assert insights["userBehavior"]["mostPopularIntent"] == "minimize_fees"
        assert insights["userBehavior"]["volumeTrend"] == "low"
