"""Wallet transaction schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, Field

from oeconomia.models.transaction import TransactionType, TransactionStatus
from oeconomia.schemas.base import CamelModel


class TransactionResponse(CamelModel):
    """Stored wallet transaction."""
    id: str
    wallet_id: str
    tx_hash: str
    type: TransactionType
    token_id: str
    amount: Decimal
    usd_value: Optional[Decimal] = None
    gas_used: Optional[Decimal] = None
    gas_price: Optional[Decimal] = None
    block_number: Optional[int] = None
    status: TransactionStatus
    # ORM attribute is tx_metadata; "metadata" on the wire
    tx_metadata: Optional[Dict[str, Any]] = Field(
        None,
        validation_alias=AliasChoices("tx_metadata", "metadata"),
        serialization_alias="metadata"
    )
    timestamp: datetime
    created_at: datetime


class TransactionsResponse(CamelModel):
    """Stored transactions plus the number of recent on-chain log entries."""
    address: str
    transactions: List[TransactionResponse]
    blockchain_data: int = Field(..., ge=0, description="Logs found in the recent block window")
    last_updated: datetime
