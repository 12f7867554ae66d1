"""API router package."""
from oeconomia.api.blockchain import router as blockchain_router

__all__ = [
    "blockchain_router",
]
