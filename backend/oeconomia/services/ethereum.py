"""
Ethereum JSON-RPC integration service.

Reads native ETH balances, ERC-20 balances and recent logs for a wallet from
an Ethereum JSON-RPC endpoint. The get_* methods never raise for upstream
failures; they log the error and return a zero-valued placeholder ("0", [],
0) so the portfolio computation downstream always receives usable input.
The read_* balance methods return None instead, for callers that must not
mistake a failed read for an empty balance.
"""
import asyncio
import itertools
import logging
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional

import aiohttp
from web3 import Web3

logger = logging.getLogger(__name__)


class EthereumRPCError(Exception):
    """JSON-RPC transport or protocol error."""
    pass


def format_units(raw_amount: int, decimals: int = 18) -> str:
    """
    Scale an integer on-chain amount to a decimal string of whole units.

    Exact (no float rounding); trailing zeros are stripped, e.g.
    format_units(1500000000000000000) == "1.5".
    """
    text = format(Decimal(raw_amount).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class EthereumService:
    """Ethereum mainnet access over JSON-RPC."""

    # 0x prefix followed by 40 hex characters
    ADDRESS_PATTERN = re.compile(r'^0x[a-fA-F0-9]{40}$')

    # ERC-20 balanceOf(address)
    BALANCE_OF_SELECTOR = "0x70a08231"

    DEFAULT_RPC_URL = "https://ethereum-rpc.publicnode.com"

    def __init__(
        self,
        rpc_url: str = DEFAULT_RPC_URL,
        timeout: float = 10.0,
        block_window: int = 1000,
        history_limit: int = 50,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.block_window = block_window
        self.history_limit = history_limit
        self._session: Optional[aiohttp.ClientSession] = None
        self._request_ids = itertools.count(1)

    async def initialize(self) -> None:
        """Create the HTTP session. Safe to call more than once."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            logger.info(f"Ethereum RPC session opened for {self.rpc_url}")

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.info("Ethereum RPC session closed")
        self._session = None

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """
        Make a JSON-RPC 2.0 call and return its ``result``.

        Raises:
            EthereumRPCError: On HTTP failure, malformed body or RPC error object
        """
        await self.initialize()

        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._request_ids),
        }

        try:
            async with self._session.post(self.rpc_url, json=payload) as response:
                response.raise_for_status()
                body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise EthereumRPCError(f"{method} failed: {e}") from e

        if not isinstance(body, dict):
            raise EthereumRPCError(f"{method} returned malformed response: {body!r}")
        if body.get("error"):
            raise EthereumRPCError(f"{method} returned error: {body['error']}")
        return body.get("result")

    def is_valid_address(self, address: str) -> bool:
        """
        Check the 0x + 40 hex character address format.

        Mixed-case addresses must also carry a valid EIP-55 checksum.
        """
        if not isinstance(address, str) or not self.ADDRESS_PATTERN.match(address):
            return False
        return Web3.is_address(address)

    async def read_eth_balance(self, address: str) -> Optional[str]:
        """
        Read the native ETH balance of an address.

        Returns:
            Balance in ether as a decimal string, None if the read failed
        """
        try:
            balance_wei = await self._rpc_call("eth_getBalance", [address, "latest"])
            return format_units(int(balance_wei, 16), 18)
        except (EthereumRPCError, TypeError, ValueError) as e:
            logger.error(f"Error getting ETH balance for {address}: {e}")
            return None

    async def read_erc20_balance(
        self,
        token_address: str,
        wallet_address: str,
        decimals: int = 18
    ) -> Optional[str]:
        """
        Read an ERC-20 token balance via balanceOf.

        Returns:
            Balance in whole token units as a decimal string, None if the read failed
        """
        try:
            call_data = self.BALANCE_OF_SELECTOR + wallet_address[2:].lower().zfill(64)
            result = await self._rpc_call(
                "eth_call",
                [{"to": token_address, "data": call_data}, "latest"]
            )
            # Addresses without code answer "0x"
            raw_amount = 0 if result == "0x" else int(result, 16)
            return format_units(raw_amount, decimals)
        except (EthereumRPCError, TypeError, ValueError) as e:
            logger.error(f"Error getting ERC20 balance of {token_address} for {wallet_address}: {e}")
            return None

    async def get_eth_balance(self, address: str) -> str:
        """Native ETH balance as a decimal string, "0" on any failure."""
        balance = await self.read_eth_balance(address)
        return "0" if balance is None else balance

    async def get_erc20_balance(self, token_address: str, wallet_address: str, decimals: int = 18) -> str:
        """ERC-20 balance as a decimal string, "0" on any failure."""
        balance = await self.read_erc20_balance(token_address, wallet_address, decimals)
        return "0" if balance is None else balance

    async def get_current_block_number(self) -> int:
        """Latest block number, 0 on failure."""
        try:
            return int(await self._rpc_call("eth_blockNumber", []), 16)
        except (EthereumRPCError, TypeError, ValueError) as e:
            logger.error(f"Error getting current block number: {e}")
            return 0

    async def get_transaction_history(
        self,
        address: str,
        start_block: Optional[int] = None,
        end_block: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Get recent logs emitted for an address.

        Scans the last ``block_window`` blocks unless a range is given and
        returns at most ``history_limit`` entries.

        Returns:
            List of raw log objects, empty on failure
        """
        try:
            if end_block is None or start_block is None:
                latest_block = int(await self._rpc_call("eth_blockNumber", []), 16)
                to_block = end_block if end_block is not None else latest_block
                from_block = start_block if start_block is not None else max(0, latest_block - self.block_window)
            else:
                from_block, to_block = start_block, end_block

            logs = await self._rpc_call(
                "eth_getLogs",
                [{"fromBlock": hex(from_block), "toBlock": hex(to_block), "address": address}]
            )
            if not isinstance(logs, list):
                return []
            return logs[:self.history_limit]
        except (EthereumRPCError, TypeError, ValueError) as e:
            logger.error(f"Error getting transaction history for {address}: {e}")
            return []
