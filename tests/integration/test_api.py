"""Integration tests for the query API."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.api import create_app
from app.utils.exceptions import StoreUnavailableError


@pytest.fixture
async def client(aiohttp_client, ledger, test_settings):
    """API client over a temporary ledger."""
    return await aiohttp_client(create_app(ledger, test_settings))


@pytest.fixture
async def seeded_ledger(ledger, transfer_factory, btc_transfer_factory):
    """Ledger with 3 BTC payments and 1 ETH payment."""
    for txid, satoshi in (("01", 100_000), ("02", 200_000), ("03", 50_000)):
        await ledger.record_if_new(btc_transfer_factory(txid * 32, satoshi))
    await ledger.record_if_new(transfer_factory(tx_hash="0x" + "04" * 32), user_id=9)
    return ledger


class TestPaymentsEndpoint:
    """GET /api/payments"""

    async def test_empty(self, client):
        resp = await client.get("/api/payments")

        assert resp.status == 200
        body = await resp.json()
        assert body == {
            "success": True,
            "data": [],
            "pagination": {"page": 1, "limit": 50, "total": 0, "pages": 0},
        }

    async def test_payment_shape(self, client, seeded_ledger):
        resp = await client.get("/api/payments", params={"limit": "1"})
        body = await resp.json()

        payment = body["data"][0]
        assert payment["transactionId"] == "0x" + "04" * 32
        assert payment["asset"] == "ETH"
        assert payment["assetKind"] == "native"
        assert payment["amount"] == "1"
        assert payment["amountRaw"] == str(10**18)
        assert payment["linkedUserId"] == 9
        assert payment["status"] == "confirmed"
        assert payment["explorerUrl"].endswith("0x" + "04" * 32)
        assert payment["observedAt"].endswith("+00:00")

    async def test_pagination(self, client, seeded_ledger):
        resp = await client.get("/api/payments", params={"page": "2", "limit": "3"})
        body = await resp.json()

        assert body["pagination"] == {"page": 2, "limit": 3, "total": 4, "pages": 2}
        assert [p["transactionId"] for p in body["data"]] == ["01" * 32]

    async def test_coin_filter(self, client, seeded_ledger):
        resp = await client.get("/api/payments", params={"coin": "btc"})
        body = await resp.json()

        assert body["pagination"]["total"] == 3
        assert {p["asset"] for p in body["data"]} == {"BTC"}

    async def test_limit_capped(self, client):
        resp = await client.get("/api/payments", params={"limit": "10000"})
        body = await resp.json()

        assert body["pagination"]["limit"] == 500

    @pytest.mark.parametrize("params", [{"page": "0"}, {"page": "abc"}, {"limit": "-5"}])
    async def test_invalid_numbers(self, client, params):
        resp = await client.get("/api/payments", params=params)

        assert resp.status == 400
        body = await resp.json()
        assert body["success"] is False
        assert body["message"]


class TestStatsEndpoint:
    """GET /api/payments/stats"""

    async def test_stats(self, client, seeded_ledger):
        resp = await client.get("/api/payments/stats")

        assert resp.status == 200
        body = await resp.json()
        stats = {s["asset"]: s for s in body["data"]}
        assert stats["BTC"]["count"] == 3
        assert stats["BTC"]["totalAmount"] == "0.0035"
        assert stats["ETH"]["count"] == 1
        assert stats["BTC"]["lastPaymentAt"] is not None


class TestPaymentLookup:
    """GET /api/payments/{transactionId}"""

    async def test_found(self, client, seeded_ledger):
        resp = await client.get("/api/payments/" + "02" * 32)

        assert resp.status == 200
        body = await resp.json()
        assert body["success"] is True
        assert body["data"]["amount"] == "0.002"
        assert body["data"]["sourceAddress"] == "1BoatSLRHtKNngkdXEeobR76b53LETtpyT"

    async def test_unknown_transaction_404(self, client):
        resp = await client.get("/api/payments/0xdeadbeef")

        assert resp.status == 404
        assert await resp.json() == {"success": False, "message": "Payment not found"}


class TestHealthEndpoint:
    """GET /api/health"""

    async def test_health(self, aiohttp_client, ledger, test_settings):
        monitor = MagicMock()
        monitor.name = "bitcoin"
        monitor.is_running = False
        monitor.last_tick_at = None
        monitor.last_error = "UpstreamUnavailableError: 503"
        monitor.total_recorded = 4
        client = await aiohttp_client(create_app(ledger, test_settings, [monitor]))

        resp = await client.get("/api/health")

        assert resp.status == 200
        body = await resp.json()
        assert body["success"] is True
        assert body["message"]
        assert body["timestamp"]
        assert set(body["wallets"]) == {"ETH", "USDT", "BTC"}
        assert body["monitors"] == [
            {
                "name": "bitcoin",
                "running": False,
                "lastTickAt": None,
                "lastError": "UpstreamUnavailableError: 503",
                "totalRecorded": 4,
            }
        ]


class TestErrors:
    """Error envelope."""

    async def test_store_unavailable_500(self, aiohttp_client, test_settings):
        ledger = MagicMock()
        ledger.query = AsyncMock(side_effect=StoreUnavailableError("db down"))
        client = await aiohttp_client(create_app(ledger, test_settings))

        resp = await client.get("/api/payments")

        assert resp.status == 500
        body = await resp.json()
        assert body == {"success": False, "message": "Internal server error"}

    async def test_unexpected_error_500_without_details(self, aiohttp_client, test_settings):
        ledger = MagicMock()
        ledger.aggregate_by_asset = AsyncMock(side_effect=RuntimeError("secret detail"))
        client = await aiohttp_client(create_app(ledger, test_settings))

        resp = await client.get("/api/payments/stats")

        assert resp.status == 500
        assert "secret" not in await resp.text()

    async def test_unknown_route_json_404(self, client):
        resp = await client.get("/api/nope")

        assert resp.status == 404
        body = await resp.json()
        assert body["success"] is False
