"""
FastAPI dependencies.

External adapters are created once per application by ServiceContainer and
attached to ``app.state.services`` during startup. Handlers receive them
through the providers below, which tests replace via
``app.dependency_overrides``.
"""
import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from oeconomia.config import Settings, settings as app_settings
from oeconomia.database import get_db
from oeconomia.services.cache import CacheService
from oeconomia.services.coingecko import CoinGeckoService
from oeconomia.services.ethereum import EthereumService
from oeconomia.services.storage import DatabaseStorage

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Owns the price feed, chain adapter and response cache of one app."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.cache = CacheService(settings.redis_url)
        self.price_service = CoinGeckoService(
            base_url=settings.coingecko_api_url,
            timeout=settings.coingecko_timeout_seconds,
            max_retries=settings.coingecko_max_retries,
            cache=self.cache,
            cache_ttl=settings.price_cache_ttl,
        )
        self.ethereum_service = EthereumService(
            rpc_url=settings.ethereum_rpc_url,
            timeout=settings.ethereum_rpc_timeout_seconds,
            block_window=settings.tx_history_block_window,
            history_limit=settings.tx_history_limit,
        )

    async def startup(self) -> None:
        await self.ethereum_service.initialize()
        logger.info("Service container started")

    async def shutdown(self) -> None:
        await self.ethereum_service.close()
        self.price_service.close()
        self.cache.close()
        logger.info("Service container stopped")


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_settings() -> Settings:
    return app_settings


def get_price_service(container: ServiceContainer = Depends(get_container)) -> CoinGeckoService:
    return container.price_service


def get_ethereum_service(container: ServiceContainer = Depends(get_container)) -> EthereumService:
    return container.ethereum_service


async def get_storage(db: AsyncSession = Depends(get_db)) -> DatabaseStorage:
    return DatabaseStorage(db)
