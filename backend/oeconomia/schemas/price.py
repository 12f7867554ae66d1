"""Token price schemas."""
from datetime import datetime
from typing import List, Optional
from pydantic import Field

from oeconomia.schemas.base import CamelModel


class TokenPriceResponse(CamelModel):
    """Current USD price of one tracked token."""
    symbol: str
    name: str
    price: float = Field(..., ge=0, description="USD price, 0 when unknown")
    change_24h: float = Field(0.0, alias="change24h", description="24h change in percent")
    last_updated: datetime


class PriceHistoryEntry(CamelModel):
    """One stored price observation."""
    price: float
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = Field(None, alias="volume24h")
    timestamp: datetime


class PriceHistoryResponse(CamelModel):
    """Stored price history of a token, newest first."""
    symbol: str
    history: List[PriceHistoryEntry]
