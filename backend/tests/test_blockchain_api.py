"""
End-to-end tests for the /api/blockchain endpoints.

Storage runs on in-memory SQLite; the price feed and the Ethereum adapter
are replaced with fakes through dependency overrides.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from oeconomia import main
from oeconomia.models import StakingType, TransactionType

from fakes import WALLET_ADDRESS

pytestmark = pytest.mark.unit

OEC_ADDRESS = "0x1234567890123456789012345678901234567890"


@pytest.fixture(autouse=True)
def clear_health_cache():
    main._health_cache.clear()
    yield
    main._health_cache.clear()


class TestPrices:

    @pytest.mark.asyncio
    async def test_prices_for_all_tokens(self, api_client, storage, seeded_tokens):
        response = await api_client.get("/api/blockchain/prices")

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"OEC", "ELOQ", "ETH"}
        assert data["OEC"]["price"] == 100.0
        assert data["OEC"]["change24h"] == 2.5
        assert data["OEC"]["name"] == "Oeconomia Token"
        assert data["ETH"]["price"] == 300.0
        assert "lastUpdated" in data["ETH"]

        # Every quoted price is recorded
        for token in seeded_tokens.values():
            assert len(await storage.get_price_history(token.id)) == 1

    @pytest.mark.asyncio
    async def test_unknown_prices_are_zero(self, api_client, storage, seeded_tokens, price_service):
        price_service.quotes = {}

        data = (await api_client.get("/api/blockchain/prices")).json()

        assert all(entry["price"] == 0 for entry in data.values())
        assert all(entry["change24h"] == 0 for entry in data.values())
        assert await storage.get_price_history(seeded_tokens["OEC"].id) == []

    @pytest.mark.asyncio
    async def test_price_history(self, api_client, storage, seeded_tokens):
        token = seeded_tokens["ETH"]
        await storage.record_price(token.id, Decimal("3000"), datetime(2024, 1, 1))
        await storage.record_price(token.id, Decimal("3100"), datetime(2024, 1, 2))
        await storage.commit()

        response = await api_client.get("/api/blockchain/prices/eth/history", params={"limit": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "ETH"
        assert [entry["price"] for entry in data["history"]] == [3100.0]

    @pytest.mark.asyncio
    async def test_price_history_unknown_symbol(self, api_client, seeded_tokens):
        response = await api_client.get("/api/blockchain/prices/DOGE/history")

        assert response.status_code == 404


class TestBalances:

    @pytest.mark.asyncio
    async def test_invalid_address(self, api_client, seeded_tokens):
        response = await api_client.post("/api/blockchain/balances", json={"address": "0x123"})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_address_is_validation_error(self, api_client):
        response = await api_client.post("/api/blockchain/balances", json={})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_balances_for_unknown_wallet_are_not_stored(self, api_client, storage, seeded_tokens, ethereum_service):
        ethereum_service.eth_balance = "1.5"
        ethereum_service.erc20_balances = {OEC_ADDRESS: "250"}

        response = await api_client.post("/api/blockchain/balances", json={"address": WALLET_ADDRESS})

        assert response.status_code == 200
        data = response.json()
        assert data["address"] == WALLET_ADDRESS
        assert data["balances"]["ETH"]["balance"] == "1.5"
        assert data["balances"]["OEC"]["balance"] == "250"
        assert data["balances"]["OEC"]["tokenId"] == seeded_tokens["OEC"].id
        assert data["balances"]["OEC"]["decimals"] == 18
        assert data["balances"]["ELOQ"]["balance"] == "0"
        assert await storage.get_wallet_by_address(WALLET_ADDRESS) is None

    @pytest.mark.asyncio
    async def test_balances_for_known_wallet_are_stored(self, api_client, storage, seeded_tokens, ethereum_service):
        wallet = await storage.create_wallet(WALLET_ADDRESS, is_connected=True)
        await storage.commit()
        ethereum_service.eth_balance = "2"

        response = await api_client.post("/api/blockchain/balances", json={"address": WALLET_ADDRESS})

        assert response.status_code == 200
        stored = await storage.get_token_balance(wallet.id, seeded_tokens["ETH"].id)
        assert stored.balance == Decimal("2")
        assert stored.usd_value == Decimal("600")
        assert len(await storage.get_token_balances(wallet.id)) == 3

    @pytest.mark.asyncio
    async def test_failed_read_keeps_stored_balance(self, api_client, storage, seeded_tokens, ethereum_service):
        wallet = await storage.create_wallet(WALLET_ADDRESS, is_connected=True)
        await storage.upsert_token_balance(
            wallet.id, seeded_tokens["ETH"].id, balance=Decimal("5"), usd_value=Decimal("15000")
        )
        await storage.commit()
        ethereum_service.eth_balance = None

        response = await api_client.post("/api/blockchain/balances", json={"address": WALLET_ADDRESS})

        assert response.status_code == 200
        assert response.json()["balances"]["ETH"]["balance"] == "0"
        stored = await storage.get_token_balance(wallet.id, seeded_tokens["ETH"].id)
        assert stored.balance == Decimal("5")
        assert stored.usd_value == Decimal("15000")

    @pytest.mark.asyncio
    async def test_bad_checksum_address(self, api_client, seeded_tokens):
        address = WALLET_ADDRESS[:-1] + WALLET_ADDRESS[-1].upper()

        response = await api_client.post("/api/blockchain/balances", json={"address": address})

        assert response.status_code == 400


class TestPortfolio:

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, api_client, seeded_tokens):
        response = await api_client.post("/api/blockchain/portfolio", json={"address": WALLET_ADDRESS})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_portfolio_metrics_and_summary(self, api_client, storage, seeded_tokens):
        wallet = await storage.create_wallet(WALLET_ADDRESS, is_connected=True)
        await storage.upsert_token_balance(wallet.id, seeded_tokens["OEC"].id, Decimal("1"))
        await storage.upsert_token_balance(wallet.id, seeded_tokens["ETH"].id, Decimal("1"))
        await storage.create_transaction(
            wallet_id=wallet.id, tx_hash="0x" + "a" * 64, type=TransactionType.BUY,
            token_id=seeded_tokens["ETH"].id, amount=Decimal("1"), timestamp=datetime(2024, 1, 1)
        )
        await storage.commit()

        response = await api_client.post("/api/blockchain/portfolio", json={"address": WALLET_ADDRESS})

        assert response.status_code == 200
        data = response.json()
        assert data["netWorth"] == 400.0
        assert data["healthScore"] == "Moderate Risk"
        allocations = {token["address"]: token for token in data["tokens"]}
        assert allocations[OEC_ADDRESS]["usdValue"] == 100.0
        assert allocations[OEC_ADDRESS]["percentage"] == pytest.approx(25.0)
        assert allocations[OEC_ADDRESS]["balance"] == "1"
        assert sum(token["percentage"] for token in data["tokens"]) == pytest.approx(100.0)
        assert "lastUpdated" in data

        portfolio = await storage.get_portfolio(wallet.id)
        assert portfolio.net_worth == Decimal("400")
        assert portfolio.health_score == "Moderate Risk"
        assert portfolio.total_trades == 1
        assert portfolio.pnl == 0

    @pytest.mark.asyncio
    async def test_empty_portfolio(self, api_client, storage, seeded_tokens):
        await storage.create_wallet(WALLET_ADDRESS)
        await storage.commit()

        data = (await api_client.post("/api/blockchain/portfolio", json={"address": WALLET_ADDRESS})).json()

        assert data["netWorth"] == 0
        assert data["tokens"] == []
        assert data["healthScore"] == "No Holdings"


class TestTransactions:

    @pytest.mark.asyncio
    async def test_invalid_address(self, api_client):
        response = await api_client.get("/api/blockchain/transactions/not-an-address")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_stored_and_chain_transactions(self, api_client, storage, seeded_tokens, ethereum_service):
        ethereum_service.logs = [{"transactionHash": "0x1"}, {"transactionHash": "0x2"}]
        wallet = await storage.create_wallet(WALLET_ADDRESS)
        await storage.create_transaction(
            wallet_id=wallet.id, tx_hash="0x" + "b" * 64, type=TransactionType.STAKE,
            token_id=seeded_tokens["OEC"].id, amount=Decimal("10"), timestamp=datetime(2024, 2, 1),
            tx_metadata={"pool": "OEC Pool"}
        )
        await storage.commit()

        response = await api_client.get(f"/api/blockchain/transactions/{WALLET_ADDRESS}")

        assert response.status_code == 200
        data = response.json()
        assert data["blockchainData"] == 2
        assert len(data["transactions"]) == 1
        tx = data["transactions"][0]
        assert tx["txHash"] == "0x" + "b" * 64
        assert tx["type"] == "stake"
        assert tx["status"] == "confirmed"
        assert tx["metadata"] == {"pool": "OEC Pool"}

    @pytest.mark.asyncio
    async def test_unknown_wallet_has_no_stored_transactions(self, api_client, seeded_tokens):
        data = (await api_client.get(f"/api/blockchain/transactions/{WALLET_ADDRESS}")).json()

        assert data["transactions"] == []
        assert data["blockchainData"] == 0


class TestStaking:

    @pytest.mark.asyncio
    async def test_invalid_address(self, api_client):
        response = await api_client.get("/api/blockchain/staking/0xzz")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, api_client):
        response = await api_client.get(f"/api/blockchain/staking/{WALLET_ADDRESS}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_active_positions_only(self, api_client, storage, seeded_tokens):
        wallet = await storage.create_wallet(WALLET_ADDRESS)
        token = seeded_tokens["OEC"]
        await storage.create_staking_position(
            wallet_id=wallet.id, token_id=token.id, pool_name="OEC Governance",
            staking_type=StakingType.GOVERNANCE, staked_amount=Decimal("1000"), apy=Decimal("15")
        )
        await storage.create_staking_position(
            wallet_id=wallet.id, token_id=token.id, pool_name="Old Farm",
            staking_type=StakingType.FARMING, is_active=False
        )
        await storage.commit()

        response = await api_client.get(f"/api/blockchain/staking/{WALLET_ADDRESS}")

        assert response.status_code == 200
        positions = response.json()["stakingPositions"]
        assert len(positions) == 1
        assert positions[0]["poolName"] == "OEC Governance"
        assert positions[0]["stakingType"] == "governance"
        assert positions[0]["token"] == {"symbol": "OEC", "name": "Oeconomia Token"}
        assert Decimal(positions[0]["stakedAmount"]) == Decimal("1000")
        assert positions[0]["isActive"] is True


class TestWalletConnection:

    @pytest.mark.asyncio
    async def test_connect_new_wallet(self, api_client, storage):
        response = await api_client.post(
            "/api/blockchain/wallet/connect",
            json={"address": WALLET_ADDRESS, "network": "ethereum"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Wallet connected successfully"
        assert data["wallet"]["address"] == WALLET_ADDRESS
        assert data["wallet"]["isConnected"] is True
        assert data["wallet"]["userId"] is None
        assert (await storage.get_wallet_by_address(WALLET_ADDRESS)).is_connected is True

    @pytest.mark.asyncio
    async def test_reconnect_existing_wallet(self, api_client, storage):
        wallet = await storage.create_wallet(WALLET_ADDRESS, is_connected=False)
        await storage.commit()

        data = (await api_client.post(
            "/api/blockchain/wallet/connect", json={"address": WALLET_ADDRESS}
        )).json()

        assert data["message"] == "Wallet already connected"
        assert data["wallet"]["id"] == wallet.id
        assert data["wallet"]["isConnected"] is True

    @pytest.mark.asyncio
    async def test_connect_with_user(self, api_client, storage):
        user = await storage.create_user("alice", "pw")
        await storage.commit()

        data = (await api_client.post(
            "/api/blockchain/wallet/connect", json={"address": WALLET_ADDRESS, "userId": user.id}
        )).json()

        assert data["wallet"]["userId"] == user.id

    @pytest.mark.asyncio
    async def test_connect_requires_address(self, api_client):
        response = await api_client.post("/api/blockchain/wallet/connect", json={"address": "   "})

        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", [WALLET_ADDRESS + "0", "0x" + "a" * 58])
    async def test_connect_rejects_overlong_address(self, api_client, storage, address):
        response = await api_client.post("/api/blockchain/wallet/connect", json={"address": address})

        assert response.status_code == 422
        assert await storage.get_wallet_by_address(address) is None

    @pytest.mark.asyncio
    async def test_disconnect(self, api_client, storage, seeded_tokens):
        wallet = await storage.create_wallet(WALLET_ADDRESS, is_connected=True)
        await storage.upsert_token_balance(wallet.id, seeded_tokens["ETH"].id, Decimal("1"))
        await storage.commit()

        response = await api_client.post("/api/blockchain/wallet/disconnect", json={"address": WALLET_ADDRESS})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Wallet disconnected successfully"}
        assert await storage.get_wallet_by_address(WALLET_ADDRESS) is None
        assert await storage.get_token_balances(wallet.id) == []

    @pytest.mark.asyncio
    async def test_disconnect_unknown_wallet(self, api_client):
        response = await api_client.post("/api/blockchain/wallet/disconnect", json={"address": WALLET_ADDRESS})

        assert response.status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_database(self, api_client):
        response = await api_client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["cached"] is False

    @pytest.mark.asyncio
    async def test_health_is_cached(self, api_client):
        await api_client.get("/api/health")

        data = (await api_client.get("/api/health")).json()

        assert data["cached"] is True
