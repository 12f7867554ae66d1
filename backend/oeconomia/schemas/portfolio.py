"""Portfolio summary schemas."""
from datetime import datetime
from typing import List

from oeconomia.schemas.base import CamelModel


class TokenAllocationResponse(CamelModel):
    """Share of one token in a portfolio."""
    address: str
    balance: str
    usd_value: float
    percentage: float


class PortfolioResponse(CamelModel):
    """Computed portfolio summary of a wallet."""
    address: str
    net_worth: float
    health_score: str
    tokens: List[TokenAllocationResponse]
    last_updated: datetime
