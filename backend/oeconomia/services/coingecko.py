"""
CoinGecko API service wrapper for token price data.

Fetches USD prices, 24h change and market data from the public CoinGecko
API. Every public method is total: network or decoding failures are logged
and turned into None / empty results so that callers can fall back to
zero-valued prices.
"""
from typing import Dict, Iterable, Optional
import logging
import time
import requests

from oeconomia.services.cache import CacheService

logger = logging.getLogger(__name__)

PriceQuote = Dict[str, float]


class CoinGeckoService:
    """
    Service for fetching token prices from CoinGecko.

    CoinGecko API notes:
    - No API key required for the public tier
    - /simple/price returns {"<id>": {"usd": .., "usd_24h_change": ..}}
    - /coins/<id> returns a "market_data" object keyed by currency
    """

    DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
    RETRY_DELAY = 1  # seconds (doubled on every attempt)

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        max_retries: int = 3,
        cache: Optional[CacheService] = None,
        cache_ttl: int = 30,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.cache = cache
        self.cache_ttl = cache_ttl
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def close(self) -> None:
        self._session.close()

    def _make_request(self, endpoint: str, params: Optional[Dict] = None) -> Optional[Dict]:
        """
        GET a CoinGecko endpoint with retry and exponential backoff.

        Args:
            endpoint: Path below the base URL (e.g., 'simple/price')
            params: Query parameters

        Returns:
            Decoded JSON body or None if every attempt failed
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        for attempt in range(self.max_retries):
            try:
                logger.debug(f"CoinGecko API request: {url} (attempt {attempt + 1})")
                response = self._session.get(url, params=params, timeout=self.timeout)
                response.raise_for_status()
                return response.json()

            except requests.exceptions.RequestException as e:
                if attempt < self.max_retries - 1:
                    wait_time = self.RETRY_DELAY * (2 ** attempt)
                    logger.warning(
                        f"CoinGecko API request failed (attempt {attempt + 1}/{self.max_retries}): {e}. "
                        f"Retrying in {wait_time} seconds..."
                    )
                    time.sleep(wait_time)
                else:
                    logger.error(f"CoinGecko API request failed after {self.max_retries} attempts: {e}")

            except ValueError as e:
                logger.error(f"Failed to decode CoinGecko API response: {e}")
                return None

        return None

    @staticmethod
    def _to_quote(price_data: Dict) -> PriceQuote:
        return {
            "usd": float(price_data.get("usd") or 0),
            "usd_24h_change": float(price_data.get("usd_24h_change") or 0),
        }

    def get_token_price(self, coin_id: str) -> Optional[PriceQuote]:
        """
        Get USD price and 24h change for one coin.

        Returns:
            {"usd": float, "usd_24h_change": float} or None if unavailable
        """
        cache_key = f"price:{coin_id}"
        if self.cache:
            cached = self.cache.get(cache_key)
            if cached:
                logger.debug(f"Cache hit for price: {coin_id}")
                return cached

        data = self._make_request(
            "simple/price",
            params={"ids": coin_id, "vs_currencies": "usd", "include_24hr_change": "true"},
        )
        if not isinstance(data, dict):
            return None

        price_data = data.get(coin_id)
        if not isinstance(price_data, dict):
            logger.warning(f"No CoinGecko price returned for {coin_id}")
            return None

        quote = self._to_quote(price_data)
        if self.cache:
            self.cache.set(cache_key, quote, self.cache_ttl)
        return quote

    def get_multiple_token_prices(self, coin_ids: Iterable[str]) -> Dict[str, PriceQuote]:
        """
        Get USD prices for several coins in one request.

        Duplicate ids are collapsed. Coins missing from the response are
        omitted; a failed request yields an empty mapping.
        """
        unique_ids = sorted(set(coin_ids))
        if not unique_ids:
            return {}

        cache_key = f"prices:{','.join(unique_ids)}"
        if self.cache:
            cached = self.cache.get(cache_key)
            if cached:
                logger.debug(f"Cache hit for prices: {cache_key}")
                return cached

        data = self._make_request(
            "simple/price",
            params={"ids": ",".join(unique_ids), "vs_currencies": "usd", "include_24hr_change": "true"},
        )
        if not isinstance(data, dict):
            logger.error("Error fetching multiple token prices from CoinGecko")
            return {}

        results: Dict[str, PriceQuote] = {}
        for coin_id, price_data in data.items():
            if isinstance(price_data, dict):
                results[coin_id] = self._to_quote(price_data)

        if self.cache and results:
            self.cache.set(cache_key, results, self.cache_ttl)
        return results

    def get_token_market_data(self, coin_id: str) -> Optional[Dict[str, float]]:
        """
        Get price, market cap, 24h volume and 24h change for a coin.

        Returns:
            Dict with keys price, market_cap, volume_24h, price_change_24h,
            or None if unavailable
        """
        data = self._make_request(
            f"coins/{coin_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "market_data": "true",
                "community_data": "false",
                "developer_data": "false",
                "sparkline": "false",
            },
        )
        if not isinstance(data, dict):
            return None

        market_data = data.get("market_data")
        if not isinstance(market_data, dict):
            logger.warning(f"No market data returned for {coin_id}")
            return None

        def usd(key: str) -> float:
            return float((market_data.get(key) or {}).get("usd") or 0)

        return {
            "price": usd("current_price"),
            "market_cap": usd("market_cap"),
            "volume_24h": usd("total_volume"),
            "price_change_24h": float(market_data.get("price_change_percentage_24h") or 0),
        }
