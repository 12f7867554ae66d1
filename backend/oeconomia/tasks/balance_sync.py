"""
Wallet balance synchronization tasks.

Reads the on-chain balance of every tracked token for each connected wallet
and upserts it, together with its USD value, into token_balances so that
portfolio calculations work from fresh data.
"""
from celery import shared_task
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Sequence
from sqlalchemy import select
import asyncio
import logging

from oeconomia.celery_app import celery_app
from oeconomia.config import settings
from oeconomia.database import SyncSessionLocal
from oeconomia.models import Token, TokenBalance, Wallet
from oeconomia.services.coingecko import CoinGeckoService
from oeconomia.services.ethereum import EthereumService
from oeconomia.services.market_data import fetch_token_prices, fetch_wallet_balances, usd_value_of
from oeconomia.services.storage import dialect_insert

logger = logging.getLogger(__name__)


async def _fetch_all_balances(
    addresses: List[str],
    tokens: Sequence[Token]
) -> Dict[str, Dict[str, Optional[str]]]:
    """
    Balances of every token for every address, keyed by address then token id.

    Failed reads are None.
    """
    ethereum = EthereumService(
        rpc_url=settings.ethereum_rpc_url,
        timeout=settings.ethereum_rpc_timeout_seconds,
    )
    await ethereum.initialize()
    try:
        results = await asyncio.gather(
            *(fetch_wallet_balances(ethereum, address, tokens) for address in addresses)
        )
        return dict(zip(addresses, results))
    finally:
        await ethereum.close()


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_kwargs={'max_retries': 3, 'countdown': 120},
    retry_backoff=True,
    retry_backoff_max=900,
    retry_jitter=True
)
def sync_wallet_balances(self):
    """
    Refresh stored balances of all connected wallets.

    Returns:
        dict: Summary with status, wallets_synced, balances_updated and balances_failed
    """
    return _sync_wallet_balances_impl()


def _sync_wallet_balances_impl():
    logger.info("Starting wallet balance synchronization task")

    db = SyncSessionLocal()

    try:
        wallets = db.execute(
            select(Wallet).where(Wallet.is_connected.is_(True))
        ).scalars().all()

        if not wallets:
            logger.info("No connected wallets to synchronize")
            return {
                "status": "success",
                "wallets_synced": 0,
                "balances_updated": 0,
                "balances_failed": 0,
            }

        tokens = db.execute(select(Token)).scalars().all()
        balances = asyncio.run(_fetch_all_balances([wallet.address for wallet in wallets], tokens))

        price_service = CoinGeckoService(
            base_url=settings.coingecko_api_url,
            timeout=settings.coingecko_timeout_seconds,
            max_retries=settings.coingecko_max_retries,
        )
        try:
            quotes = fetch_token_prices(price_service, tokens, settings.token_coingecko_ids)
        finally:
            price_service.close()

        dialect_name = db.get_bind().dialect.name
        now = datetime.utcnow()
        updated = 0
        failed = 0

        for wallet in wallets:
            wallet_balances = balances.get(wallet.address, {})
            for token in tokens:
                balance = wallet_balances.get(token.id)
                if balance is None:
                    # Keep the last stored balance
                    failed += 1
                    continue
                amount = Decimal(balance)
                values = {
                    "balance": amount,
                    "usd_value": usd_value_of(amount, quotes.get(token.id)),
                    "last_updated": now,
                }
                stmt = dialect_insert(dialect_name, TokenBalance).values(
                    wallet_id=wallet.id,
                    token_id=token.id,
                    **values
                ).on_conflict_do_update(index_elements=["wallet_id", "token_id"], set_=values)
                db.execute(stmt)
                updated += 1

        db.commit()

        logger.info(
            f"Wallet balance synchronization completed: {len(wallets)} wallets, "
            f"{updated} balances updated, {failed} reads failed"
        )
        return {
            "status": "success",
            "wallets_synced": len(wallets),
            "balances_updated": updated,
            "balances_failed": failed,
        }

    except Exception as e:
        db.rollback()
        logger.error(f"Wallet balance synchronization failed: {str(e)}")
        raise

    finally:
        db.close()
