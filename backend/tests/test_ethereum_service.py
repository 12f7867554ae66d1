"""
Tests for the Ethereum JSON-RPC service.

RPC calls are mocked either at the _rpc_call level or by replacing the
aiohttp session.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from oeconomia.services.ethereum import EthereumRPCError, EthereumService, format_units

pytestmark = pytest.mark.unit

WALLET = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
TOKEN = "0x1234567890123456789012345678901234567890"


@pytest.fixture
def service():
    return EthereumService(rpc_url="http://rpc.test", block_window=1000, history_limit=50)


def fake_session(body):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json = AsyncMock(return_value=body)
    session = MagicMock()
    session.closed = False
    session.post.return_value.__aenter__.return_value = response
    return session


class TestFormatUnits:

    def test_whole_and_fractional(self):
        assert format_units(10 ** 18) == "1"
        assert format_units(1500000000000000000) == "1.5"
        assert format_units(1) == "0.000000000000000001"

    def test_zero(self):
        assert format_units(0) == "0"

    def test_custom_decimals(self):
        assert format_units(1234567, 6) == "1.234567"
        assert format_units(25, 0) == "25"


class TestAddressValidation:

    @pytest.mark.parametrize("address", [WALLET, WALLET.lower(), "0x" + "F" * 40])
    def test_valid(self, service, address):
        assert service.is_valid_address(address) is True

    @pytest.mark.parametrize("address", ["", "0x123", WALLET[2:], "0x" + "g" * 40, WALLET + "0", None])
    def test_invalid(self, service, address):
        assert service.is_valid_address(address) is False

    def test_mixed_case_with_bad_checksum(self, service):
        # Last character flipped from the checksummed form
        assert service.is_valid_address(WALLET[:-1] + "E") is False


class TestBalances:

    @pytest.mark.asyncio
    async def test_eth_balance(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(return_value=hex(2 * 10 ** 18))) as mock_rpc:
            assert await service.get_eth_balance(WALLET) == "2"

        mock_rpc.assert_awaited_once_with("eth_getBalance", [WALLET, "latest"])

    @pytest.mark.asyncio
    async def test_eth_balance_error_returns_zero(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(side_effect=EthereumRPCError("down"))):
            assert await service.get_eth_balance(WALLET) == "0"

    @pytest.mark.asyncio
    async def test_read_balance_reports_failure_as_none(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(side_effect=EthereumRPCError("down"))):
            assert await service.read_eth_balance(WALLET) is None
            assert await service.read_erc20_balance(TOKEN, WALLET) is None

    @pytest.mark.asyncio
    async def test_read_erc20_without_contract_code_is_zero(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(return_value="0x")):
            assert await service.read_erc20_balance(TOKEN, WALLET) == "0"

    @pytest.mark.asyncio
    async def test_erc20_balance_call_data(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(return_value="0x" + hex(5 * 10 ** 17)[2:].zfill(64))) as mock_rpc:
            assert await service.get_erc20_balance(TOKEN, WALLET) == "0.5"

        method, params = mock_rpc.await_args.args
        assert method == "eth_call"
        assert params[0]["to"] == TOKEN
        assert params[0]["data"] == "0x70a08231" + "000000000000000000000000" + WALLET[2:].lower()
        assert len(params[0]["data"]) == 2 + 8 + 64
        assert params[1] == "latest"

    @pytest.mark.asyncio
    async def test_erc20_empty_result_returns_zero(self, service):
        # Calls to addresses without code return "0x"
        with patch.object(service, "_rpc_call", AsyncMock(return_value="0x")):
            assert await service.get_erc20_balance(TOKEN, WALLET) == "0"

    @pytest.mark.asyncio
    async def test_erc20_decimals(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(return_value=hex(1234500))):
            assert await service.get_erc20_balance(TOKEN, WALLET, decimals=6) == "1.2345"


class TestTransactionHistory:

    @pytest.mark.asyncio
    async def test_scans_recent_block_window(self, service):
        logs = [{"transactionHash": f"0x{i}"} for i in range(80)]
        mock_rpc = AsyncMock(side_effect=[hex(5000), logs])
        with patch.object(service, "_rpc_call", mock_rpc):
            result = await service.get_transaction_history(WALLET)

        assert len(result) == 50
        method, params = mock_rpc.await_args_list[1].args
        assert method == "eth_getLogs"
        assert params == [{"fromBlock": hex(4000), "toBlock": hex(5000), "address": WALLET}]

    @pytest.mark.asyncio
    async def test_explicit_range_skips_block_number(self, service):
        mock_rpc = AsyncMock(return_value=[])
        with patch.object(service, "_rpc_call", mock_rpc):
            assert await service.get_transaction_history(WALLET, start_block=10, end_block=20) == []

        mock_rpc.assert_awaited_once()
        assert mock_rpc.await_args.args[1][0]["fromBlock"] == "0xa"

    @pytest.mark.asyncio
    async def test_window_clamped_at_genesis(self, service):
        mock_rpc = AsyncMock(side_effect=[hex(10), []])
        with patch.object(service, "_rpc_call", mock_rpc):
            await service.get_transaction_history(WALLET)

        assert mock_rpc.await_args_list[1].args[1][0]["fromBlock"] == "0x0"

    @pytest.mark.asyncio
    async def test_error_returns_empty_list(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(side_effect=EthereumRPCError("boom"))):
            assert await service.get_transaction_history(WALLET) == []

    @pytest.mark.asyncio
    async def test_current_block_number(self, service):
        with patch.object(service, "_rpc_call", AsyncMock(return_value="0x10")):
            assert await service.get_current_block_number() == 16

        with patch.object(service, "_rpc_call", AsyncMock(side_effect=EthereumRPCError("boom"))):
            assert await service.get_current_block_number() == 0


class TestRpcCall:

    @pytest.mark.asyncio
    async def test_returns_result(self, service):
        service._session = fake_session({"jsonrpc": "2.0", "id": 1, "result": "0x1"})

        assert await service._rpc_call("eth_blockNumber", []) == "0x1"

        payload = service._session.post.call_args.kwargs["json"]
        assert payload["jsonrpc"] == "2.0"
        assert payload["method"] == "eth_blockNumber"
        assert payload["params"] == []

    @pytest.mark.asyncio
    async def test_request_ids_increase(self, service):
        service._session = fake_session({"result": "0x1"})

        await service._rpc_call("eth_blockNumber", [])
        await service._rpc_call("eth_blockNumber", [])

        ids = [c.kwargs["json"]["id"] for c in service._session.post.call_args_list]
        assert ids == [1, 2]

    @pytest.mark.asyncio
    async def test_error_object_raises(self, service):
        service._session = fake_session({"error": {"code": -32000, "message": "bad"}})

        with pytest.raises(EthereumRPCError):
            await service._rpc_call("eth_call", [])

    @pytest.mark.asyncio
    async def test_malformed_body_raises(self, service):
        service._session = fake_session(["not", "a", "dict"])

        with pytest.raises(EthereumRPCError):
            await service._rpc_call("eth_call", [])

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, service):
        session = fake_session({})
        session.post.side_effect = aiohttp.ClientError("refused")
        service._session = session

        with pytest.raises(EthereumRPCError):
            await service._rpc_call("eth_getBalance", [WALLET, "latest"])

    @pytest.mark.asyncio
    async def test_close_releases_session(self, service):
        session = fake_session({})
        session.close = AsyncMock()
        service._session = session

        await service.close()

        session.close.assert_awaited_once()
        assert service._session is None
