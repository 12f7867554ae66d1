"""Wallet balance schemas."""
from typing import Dict
from pydantic import Field

from oeconomia.schemas.base import CamelModel


class TokenBalanceEntry(CamelModel):
    """Balance of one token, in whole units as a decimal string."""
    token_id: str
    symbol: str
    balance: str = Field(..., description="Balance scaled by token decimals")
    decimals: int
    address: str = Field(..., description="Token contract address")


class BalancesResponse(CamelModel):
    """Live balances of a wallet keyed by token symbol."""
    address: str
    balances: Dict[str, TokenBalanceEntry]
