"""
TokenBalance model - Last known balance of a token in a wallet.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from oeconomia.database import Base, generate_uuid


class TokenBalance(Base):
    """Balance cache keyed by (wallet, token); written with upserts."""
    __tablename__ = "token_balances"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    wallet_id: Mapped[str] = mapped_column(
        ForeignKey("wallets.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    token_id: Mapped[str] = mapped_column(
        ForeignKey("tokens.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    balance: Mapped[Decimal] = mapped_column(
        Numeric(precision=30, scale=18),
        nullable=False,
        default=Decimal("0"),
        comment="Balance in whole token units (already scaled by decimals)"
    )
    usd_value: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=8),
        nullable=False,
        default=Decimal("0")
    )

    last_updated: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow
    )

    __table_args__ = (
        UniqueConstraint("wallet_id", "token_id", name="token_balances_wallet_token_unique"),
    )

    def __repr__(self) -> str:
        return (
            f"TokenBalance(wallet_id={self.wallet_id!r}, "
            f"token_id={self.token_id!r}, "
            f"balance={self.balance!r})"
        )
