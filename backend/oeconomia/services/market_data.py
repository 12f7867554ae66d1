"""
Market data helpers shared by the API and background tasks.

Resolve the price feed id of each tracked token, fetch USD quotes for a set
of tokens in one batch, and read a wallet's on-chain balance of every token
concurrently.
"""
import asyncio
import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional, Sequence

from oeconomia.models import Token
from oeconomia.services.coingecko import CoinGeckoService, PriceQuote
from oeconomia.services.ethereum import EthereumService

logger = logging.getLogger(__name__)


def coingecko_id_for_token(token: Token, fallback_ids: Mapping[str, str]) -> Optional[str]:
    """Token's own price feed id, else the configured id for its symbol."""
    return token.coingecko_id or fallback_ids.get(token.symbol.upper())


def fetch_token_prices(
    price_service: CoinGeckoService,
    tokens: Sequence[Token],
    fallback_ids: Mapping[str, str]
) -> Dict[str, PriceQuote]:
    """
    Fetch USD quotes for tokens with a single batch request.

    Blocking; run in a worker thread from async code.

    Returns:
        Quotes keyed by token id. Tokens without a feed id or without a
        quote in the response are omitted.
    """
    feed_ids = {token.id: coingecko_id_for_token(token, fallback_ids) for token in tokens}
    quotes = price_service.get_multiple_token_prices(
        coin_id for coin_id in feed_ids.values() if coin_id
    )

    prices: Dict[str, PriceQuote] = {}
    for token_id, coin_id in feed_ids.items():
        if coin_id and coin_id in quotes:
            prices[token_id] = quotes[coin_id]

    logger.debug(f"Resolved prices for {len(prices)}/{len(feed_ids)} tokens")
    return prices


async def fetch_wallet_balances(
    ethereum: EthereumService,
    wallet_address: str,
    tokens: Sequence[Token]
) -> Dict[str, Optional[str]]:
    """
    Read a wallet's balance of every token concurrently.

    The native coin comes from the account balance, other tokens from their
    contract's balanceOf.

    Returns:
        Decimal strings keyed by token id, None where the read failed
    """
    async def _balance(token: Token) -> Optional[str]:
        if token.is_native:
            return await ethereum.read_eth_balance(wallet_address)
        return await ethereum.read_erc20_balance(token.address, wallet_address, token.decimals)

    balances = await asyncio.gather(*(_balance(token) for token in tokens))
    return {token.id: balance for token, balance in zip(tokens, balances)}


def usd_value_of(balance: Decimal, quote: Optional[PriceQuote]) -> Decimal:
    if not quote:
        return Decimal("0")
    return balance * Decimal(str(quote["usd"]))


def format_decimal(value: Decimal) -> str:
    """Plain decimal string without exponent or trailing zeros."""
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"
