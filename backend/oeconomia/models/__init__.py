"""
Models package - Import all database models for easy access.
"""
from oeconomia.models.user import User
from oeconomia.models.wallet import Wallet
from oeconomia.models.token import Token, NATIVE_TOKEN_ADDRESS
from oeconomia.models.portfolio import Portfolio, DEFAULT_HEALTH_SCORE
from oeconomia.models.token_balance import TokenBalance
from oeconomia.models.staking_position import StakingPosition, StakingType
from oeconomia.models.transaction import Transaction, TransactionType, TransactionStatus
from oeconomia.models.price_history import PriceHistory

__all__ = [
    "User",
    "Wallet",
    "Token",
    "NATIVE_TOKEN_ADDRESS",
    "Portfolio",
    "DEFAULT_HEALTH_SCORE",
    "TokenBalance",
    "StakingPosition",
    "StakingType",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "PriceHistory",
]
