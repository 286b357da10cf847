"""
Blockchain sync state repository.

Data access layer for per-monitor scan cursors.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.blockchain_sync_state import BlockchainSyncState
from app.repositories.base import BaseRepository


class SyncStateRepository(BaseRepository[BlockchainSyncState]):
    """Repository for monitor scan cursors."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(BlockchainSyncState, session)

    async def get_by_monitor(
        self, monitor: str
    ) -> BlockchainSyncState | None:
        """
        Get sync state of a monitor.

        Args:
            monitor: Monitor name (ethereum, bitcoin)

        Returns:
            Sync state or None if the monitor never ran
        """
        return await self.get_by(monitor=monitor)

    async def get_or_create(self, monitor: str) -> BlockchainSyncState:
        """
        Get sync state of a monitor, creating an empty one if missing.

        Args:
            monitor: Monitor name

        Returns:
            Sync state
        """
        state = await self.get_by_monitor(monitor)
        if state:
            return state

        return await self.create(
            monitor=monitor,
            last_synced_block=0,
            total_recorded=0,
            error_count=0,
        )
