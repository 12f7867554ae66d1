"""Staking position schemas."""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from oeconomia.models.staking_position import StakingType
from oeconomia.schemas.base import CamelModel


class StakingTokenInfo(CamelModel):
    symbol: str
    name: str


class StakingPositionResponse(CamelModel):
    """Active staking position of a wallet with its token."""
    id: str
    pool_name: str
    staking_type: StakingType
    token: Optional[StakingTokenInfo] = None
    staked_amount: Decimal
    rewards_earned: Decimal
    unclaimed_rewards: Decimal
    apy: Decimal
    is_active: bool
    created_at: datetime


class StakingResponse(CamelModel):
    address: str
    staking_positions: List[StakingPositionResponse]
    last_updated: datetime
