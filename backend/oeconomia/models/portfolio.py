"""
Portfolio model - Latest computed summary per wallet.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Numeric, DateTime, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from oeconomia.database import Base, generate_uuid

DEFAULT_HEALTH_SCORE = "Unknown"


class Portfolio(Base):
    """
    Cached portfolio summary.

    One row per wallet, overwritten every time metrics are recomputed. This is
    not a history table: only the latest values are kept.
    """
    __tablename__ = "portfolios"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    wallet_id: Mapped[str] = mapped_column(
        ForeignKey("wallets.id", ondelete="CASCADE"),
        nullable=False,
        comment="Wallet the summary belongs to"
    )

    net_worth: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=8),
        nullable=False,
        default=Decimal("0"),
        comment="Sum of USD value across holdings"
    )
    # Profit/loss tracking is not implemented; both stay at zero
    pnl: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=8),
        nullable=False,
        default=Decimal("0")
    )
    pnl_percentage: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=4),
        nullable=False,
        default=Decimal("0")
    )
    total_trades: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    health_score: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        default=DEFAULT_HEALTH_SCORE,
        comment="Concentration label from the portfolio aggregator"
    )

    last_updated: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("wallet_id", name="portfolios_wallet_id_unique"),
    )

    def __repr__(self) -> str:
        return (
            f"Portfolio(wallet_id={self.wallet_id!r}, "
            f"net_worth={self.net_worth!r}, "
            f"health_score={self.health_score!r})"
        )
