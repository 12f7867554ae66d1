"""
Wallet model - On-chain address tracked by the dashboard.
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from oeconomia.database import Base, generate_uuid


class Wallet(Base):
    """
    Wallet model representing a connected blockchain address.

    A wallet may exist without an owning user (anonymous connections from the
    dashboard). Removing the wallet removes its portfolio summary, balances,
    staking positions and transactions.
    """
    __tablename__ = "wallets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    user_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
        comment="Owning user, if any"
    )
    address: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
        unique=True,
        index=True,
        comment="Wallet address (0x-prefixed)"
    )
    network: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="ethereum",
        comment="Network the address lives on"
    )
    is_connected: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
        comment="Whether the dashboard currently has the wallet connected"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return (
            f"Wallet(id={self.id!r}, "
            f"address={self.address!r}, "
            f"network={self.network!r}, "
            f"connected={self.is_connected!r})"
        )
