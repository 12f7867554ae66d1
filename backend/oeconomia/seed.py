"""
Default token data.

Inserts the tracked tokens (OEC, ELOQ and native ETH) when their symbol is
missing. Safe to run on every startup.
"""
import logging
from typing import Any, Dict, List

from oeconomia.models import NATIVE_TOKEN_ADDRESS
from oeconomia.services.storage import DatabaseStorage

logger = logging.getLogger(__name__)

DEFAULT_TOKENS: List[Dict[str, Any]] = [
    {
        "symbol": "OEC",
        "name": "Oeconomia Token",
        "address": "0x1234567890123456789012345678901234567890",  # placeholder contract
        "decimals": 18,
        "logo_url": None,
    },
    {
        "symbol": "ELOQ",
        "name": "Eloquent Token",
        "address": "0x0987654321098765432109876543210987654321",  # placeholder contract
        "decimals": 18,
        "logo_url": None,
    },
    {
        "symbol": "ETH",
        "name": "Ethereum",
        "address": NATIVE_TOKEN_ADDRESS,
        "decimals": 18,
        "logo_url": None,
    },
]


async def seed_database(storage: DatabaseStorage) -> int:
    """
    Insert every default token whose symbol is not stored yet.

    The caller commits.

    Returns:
        Number of tokens inserted
    """
    logger.info("Seeding database with default token data")
    inserted = 0

    for token_data in DEFAULT_TOKENS:
        existing = await storage.get_token_by_symbol(token_data["symbol"])
        if existing is not None:
            logger.debug(f"{token_data['symbol']} token already exists")
            continue

        await storage.create_token(**token_data)
        inserted += 1
        logger.info(f"Inserted {token_data['symbol']} token")

    logger.info(f"Database seeding completed ({inserted} tokens inserted)")
    return inserted
