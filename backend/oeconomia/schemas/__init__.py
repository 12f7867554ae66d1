"""Pydantic schemas for API request/response validation."""
from oeconomia.schemas.base import CamelModel
from oeconomia.schemas.wallet import (
    WalletAddressRequest,
    WalletConnectRequest,
    WalletDisconnectRequest,
    WalletResponse,
    WalletConnectResponse,
    WalletDisconnectResponse,
)
from oeconomia.schemas.price import TokenPriceResponse, PriceHistoryEntry, PriceHistoryResponse
from oeconomia.schemas.balance import TokenBalanceEntry, BalancesResponse
from oeconomia.schemas.portfolio import TokenAllocationResponse, PortfolioResponse
from oeconomia.schemas.transaction import TransactionResponse, TransactionsResponse
from oeconomia.schemas.staking import StakingTokenInfo, StakingPositionResponse, StakingResponse

__all__ = [
    "CamelModel",
    "WalletAddressRequest",
    "WalletConnectRequest",
    "WalletDisconnectRequest",
    "WalletResponse",
    "WalletConnectResponse",
    "WalletDisconnectResponse",
    "TokenPriceResponse",
    "PriceHistoryEntry",
    "PriceHistoryResponse",
    "TokenBalanceEntry",
    "BalancesResponse",
    "TokenAllocationResponse",
    "PortfolioResponse",
    "TransactionResponse",
    "TransactionsResponse",
    "StakingTokenInfo",
    "StakingPositionResponse",
    "StakingResponse",
]
