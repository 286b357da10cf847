"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from app.models.base import Base
from app.models.blockchain_sync_state import BlockchainSyncState
from app.models.enums import AssetKind, Network, PaymentStatus
from app.models.payment import Payment
from app.models.user import User

__all__ = [
    # Base
    "Base",
    # Enums
    "AssetKind",
    "Network",
    "PaymentStatus",
    # Models
    "Payment",
    "User",
    "BlockchainSyncState",
]
