"""
StakingPosition model - Governance, staking and farming positions.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy import String, Numeric, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
import enum

from oeconomia.database import Base, generate_uuid


class StakingType(str, enum.Enum):
    """Kind of staking pool."""
    GOVERNANCE = "governance"
    STAKING = "staking"
    FARMING = "farming"


class StakingPosition(Base):
    """Position held by a wallet in a staking pool."""
    __tablename__ = "staking_positions"

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

    pool_name: Mapped[str] = mapped_column(String(100), nullable=False)
    staking_type: Mapped[StakingType] = mapped_column(
        SQLEnum(StakingType, native_enum=False),
        nullable=False
    )

    staked_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=30, scale=18), nullable=False, default=Decimal("0")
    )
    rewards_earned: Mapped[Decimal] = mapped_column(
        Numeric(precision=30, scale=18), nullable=False, default=Decimal("0")
    )
    unclaimed_rewards: Mapped[Decimal] = mapped_column(
        Numeric(precision=30, scale=18), nullable=False, default=Decimal("0")
    )
    apy: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=4),
        nullable=False,
        default=Decimal("0"),
        comment="Annual percentage yield"
    )
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True, index=True)

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
            f"StakingPosition(id={self.id!r}, "
            f"pool={self.pool_name!r}, "
            f"type={self.staking_type.value!r}, "
            f"staked={self.staked_amount!r}, "
            f"active={self.is_active!r})"
        )
