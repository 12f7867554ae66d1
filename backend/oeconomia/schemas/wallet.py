"""Wallet request and response schemas."""
from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator

from oeconomia.schemas.base import CamelModel


def _normalize_address(v: str) -> str:
    if not v or not v.strip():
        raise ValueError("Wallet address cannot be empty")
    return v.strip()


class WalletAddressRequest(CamelModel):
    """Request body carrying a single wallet address."""
    address: str = Field(..., max_length=100, description="Wallet address (0x-prefixed)")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return _normalize_address(v)


class WalletConnectRequest(CamelModel):
    """Request body for connecting a wallet to the dashboard."""
    address: str = Field(..., max_length=42, description="Wallet address (0x-prefixed)")
    user_id: Optional[str] = Field(None, max_length=36, description="Owning user id")
    network: str = Field("ethereum", min_length=1, max_length=20, description="Network name")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return _normalize_address(v)


class WalletDisconnectRequest(CamelModel):
    """Request body for disconnecting (removing) a wallet."""
    address: str = Field(..., max_length=100, description="Wallet address (0x-prefixed)")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        return _normalize_address(v)


class WalletResponse(CamelModel):
    """Stored wallet."""
    id: str
    user_id: Optional[str] = None
    address: str
    network: str
    is_connected: bool
    created_at: datetime
    updated_at: datetime


class WalletConnectResponse(CamelModel):
    success: bool
    wallet: WalletResponse
    message: str


class WalletDisconnectResponse(CamelModel):
    success: bool
    message: str
