"""
Blockchain Sync State model.

Durable scan cursor for each payment monitor.
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class BlockchainSyncState(Base):
    """
    Tracks how far a payment monitor has scanned.

    Used to:
    - Resume scanning after a restart instead of re-reading a fixed window
    - Stop paging explorer history at the last transaction already seen
    - Keep the last tick error visible to operators
    """

    __tablename__ = "blockchain_sync_state"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Monitor identification (ethereum, bitcoin)
    monitor: Mapped[str] = mapped_column(
        String(20), nullable=False, unique=True, index=True
    )

    # Cursor for block-ranged scans
    last_synced_block: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    # Cursor for explorer scans (newest confirmed txid seen)
    last_seen_tx: Mapped[str | None] = mapped_column(
        String(80), nullable=True
    )

    # Statistics
    total_recorded: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Error tracking
    last_error: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )
    error_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )
