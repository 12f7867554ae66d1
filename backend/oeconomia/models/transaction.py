"""
Transaction model - Wallet activity recorded by the dashboard.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy import String, Numeric, DateTime, Integer, JSON, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
import enum

from oeconomia.database import Base, generate_uuid


class TransactionType(str, enum.Enum):
    """Wallet transaction type enumeration."""
    BUY = "buy"
    SELL = "sell"
    STAKE = "stake"
    UNSTAKE = "unstake"
    CLAIM = "claim"
    TRANSFER = "transfer"


class TransactionStatus(str, enum.Enum):
    """On-chain confirmation status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class Transaction(Base):
    """
    Transaction model for wallet activity.

    ``tx_hash`` is unique across all wallets, so the same on-chain transaction
    can never be stored twice.
    """
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    wallet_id: Mapped[str] = mapped_column(
        ForeignKey("wallets.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    tx_hash: Mapped[str] = mapped_column(
        String(66),
        nullable=False,
        unique=True,
        index=True,
        comment="Blockchain transaction hash"
    )
    type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType, native_enum=False),
        nullable=False
    )
    token_id: Mapped[str] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(precision=30, scale=18), nullable=False)
    usd_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=20, scale=8), nullable=True)
    gas_used: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=20, scale=0), nullable=True)
    gas_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=20, scale=0), nullable=True)
    block_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[TransactionStatus] = mapped_column(
        SQLEnum(TransactionStatus, native_enum=False),
        nullable=False,
        default=TransactionStatus.CONFIRMED,
        index=True
    )
    # "metadata" is reserved on declarative classes
    tx_metadata: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
        comment="Additional transaction-specific data"
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
        comment="When the transaction occurred"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    __table_args__ = (
        Index("ix_transactions_wallet_timestamp", "wallet_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"type={self.type.value!r}, "
            f"amount={self.amount!r}, "
            f"timestamp={self.timestamp!r})"
        )
