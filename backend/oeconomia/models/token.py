"""
Token model - Assets the dashboard tracks (OEC, ELOQ, ETH).
"""
from datetime import datetime
from typing import Optional
from sqlalchemy import String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from oeconomia.database import Base, generate_uuid

NATIVE_TOKEN_ADDRESS = "0x0000000000000000000000000000000000000000"


class Token(Base):
    """Tracked token. The native coin uses the zero address."""
    __tablename__ = "tokens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    symbol: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        index=True,
        comment="Ticker symbol (e.g., OEC, ELOQ, ETH)"
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str] = mapped_column(
        String(42),
        nullable=False,
        index=True,
        comment="Contract address, zero address for the native coin"
    )
    decimals: Mapped[int] = mapped_column(Integer, nullable=False, default=18)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    coingecko_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Price feed id, falls back to settings.token_coingecko_ids"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    @property
    def is_native(self) -> bool:
        return self.address.lower() == NATIVE_TOKEN_ADDRESS

    def __repr__(self) -> str:
        return (
            f"Token(id={self.id!r}, "
            f"symbol={self.symbol!r}, "
            f"address={self.address!r}, "
            f"decimals={self.decimals!r})"
        )
