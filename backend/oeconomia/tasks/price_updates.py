"""
Token price history tasks.

Fetches current market data for every tracked token from CoinGecko and
stores one price history row per token. Timestamps are truncated to the
minute, so running the task twice in the same minute stores nothing new.
"""
from celery import shared_task
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional
from sqlalchemy import select
import logging

from oeconomia.celery_app import celery_app
from oeconomia.config import settings
from oeconomia.database import SyncSessionLocal
from oeconomia.models import Token, PriceHistory
from oeconomia.services.coingecko import CoinGeckoService
from oeconomia.services.market_data import coingecko_id_for_token
from oeconomia.services.storage import dialect_insert

logger = logging.getLogger(__name__)


def _to_decimal(value: Optional[float]) -> Optional[Decimal]:
    return Decimal(str(value)) if value is not None else None


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={'max_retries': 3, 'countdown': 60},
    retry_backoff=True,
    retry_backoff_max=600,
    retry_jitter=True
)
def record_token_prices(self):
    """
    Record the current price of every tracked token.

    Returns:
        dict: Summary with status, recorded, skipped, failed and failed_symbols
    """
    return _record_token_prices_impl()


def _record_token_prices_impl():
    logger.info("Starting token price recording task")

    db = SyncSessionLocal()
    price_service = CoinGeckoService(
        base_url=settings.coingecko_api_url,
        timeout=settings.coingecko_timeout_seconds,
        max_retries=settings.coingecko_max_retries,
    )

    try:
        tokens = db.execute(select(Token).order_by(Token.symbol)).scalars().all()
        timestamp = datetime.utcnow().replace(second=0, microsecond=0)
        dialect_name = db.get_bind().dialect.name

        # Several tokens may share one feed id
        market_data_by_id: Dict[str, Optional[Dict[str, float]]] = {}

        recorded = 0
        skipped = 0
        failed_symbols = []

        for token in tokens:
            coin_id = coingecko_id_for_token(token, settings.token_coingecko_ids)
            if not coin_id:
                logger.debug(f"No price feed configured for {token.symbol}")
                skipped += 1
                continue

            if coin_id not in market_data_by_id:
                market_data_by_id[coin_id] = price_service.get_token_market_data(coin_id)
            market_data = market_data_by_id[coin_id]

            if market_data is None:
                logger.warning(f"No market data for {token.symbol} ({coin_id})")
                failed_symbols.append(token.symbol)
                continue

            stmt = dialect_insert(dialect_name, PriceHistory).values(
                token_id=token.id,
                price=_to_decimal(market_data["price"]),
                market_cap=_to_decimal(market_data.get("market_cap")),
                volume_24h=_to_decimal(market_data.get("volume_24h")),
                timestamp=timestamp
            ).on_conflict_do_nothing(index_elements=["token_id", "timestamp"])

            if db.execute(stmt).rowcount > 0:
                recorded += 1
                logger.debug(f"Recorded {token.symbol} price {market_data['price']}")
            else:
                skipped += 1

        db.commit()

        result = {
            "status": "success",
            "recorded": recorded,
            "skipped": skipped,
            "failed": len(failed_symbols),
            "timestamp": timestamp.isoformat(),
        }
        if failed_symbols:
            result["failed_symbols"] = failed_symbols

        logger.info(
            f"Token price recording completed: {recorded} recorded, "
            f"{skipped} skipped, {len(failed_symbols)} failed"
        )
        return result

    except Exception as e:
        db.rollback()
        logger.error(f"Token price recording task failed: {str(e)}")
        raise

    finally:
        db.close()
        price_service.close()
