"""
PriceHistory model - Historical USD prices per token.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Numeric, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from oeconomia.database import Base, generate_uuid


class PriceHistory(Base):
    """
    PriceHistory model storing USD price observations.

    Rows are recorded whenever prices are served or by the periodic price
    task. (token, timestamp) is unique.
    """
    __tablename__ = "price_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    token_id: Mapped[str] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=8),
        nullable=False,
        comment="Price in USD"
    )
    market_cap: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=30, scale=8), nullable=True)
    volume_24h: Mapped[Optional[Decimal]] = mapped_column(Numeric(precision=30, scale=8), nullable=True)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
        comment="Observation time"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("token_id", "timestamp", name="price_history_token_timestamp_unique"),
        Index("ix_price_history_token_timestamp", "token_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"PriceHistory(token_id={self.token_id!r}, "
            f"price={self.price!r}, "
            f"timestamp={self.timestamp!r})"
        )
