"""
Ethereum payment monitor.

Scans new blocks for native ETH and ERC-20 payments, resuming from the
last fully scanned block.
"""

from loguru import logger

from app.config.constants import (
    DEFAULT_ETH_MAX_BLOCKS_PER_TICK,
    DEFAULT_ETH_SCAN_WINDOW_BLOCKS,
    MONITOR_ETHEREUM,
)
from app.services.chain_readers.ethereum import EthereumReader
from app.services.chain_readers.types import ScanResult
from app.services.payment_ledger import PaymentLedger
from app.services.user_resolver import UserResolver

from .base import PaymentMonitor


class EthereumPaymentMonitor(PaymentMonitor):
    """Block-ranged monitor for the Ethereum receiving wallets."""

    name = MONITOR_ETHEREUM
    log_prefix = "[ETH Monitor]"

    def __init__(
        self,
        reader: EthereumReader,
        ledger: PaymentLedger,
        resolver: UserResolver,
        scan_window: int = DEFAULT_ETH_SCAN_WINDOW_BLOCKS,
        max_blocks_per_tick: int = DEFAULT_ETH_MAX_BLOCKS_PER_TICK,
    ) -> None:
        """
        Initialize Ethereum monitor.

        Args:
            reader: Ethereum chain reader
            ledger: Payment ledger
            resolver: User resolver
            scan_window: Trailing blocks scanned when no cursor exists
            max_blocks_per_tick: Upper bound of blocks per tick
        """
        super().__init__(ledger, resolver)
        self.reader = reader
        self.scan_window = scan_window
        self.max_blocks_per_tick = max_blocks_per_tick
        self._from_block: int | None = None

    async def _collect(self) -> ScanResult:
        latest = await self.reader.get_latest_block()
        state = await self.ledger.get_sync_state(self.name)

        if state is None or state.last_synced_block <= 0:
            from_block = max(latest - self.scan_window + 1, 0)
            logger.info(
                f"{self.log_prefix} No cursor, starting at block {from_block}"
            )
        else:
            from_block = state.last_synced_block + 1

        to_block = min(latest, from_block + self.max_blocks_per_tick - 1)
        self._from_block = from_block

        if from_block > to_block:
            self._range = f"up to date at block {latest}"
            return ScanResult(scanned_to=None)

        self._range = f"blocks {from_block}-{to_block}"
        if to_block < latest:
            logger.info(
                f"{self.log_prefix} Catching up: {latest - to_block} "
                f"blocks behind after this tick"
            )
        return await self.reader.scan(from_block, to_block)

    async def _save_cursor(self, scan: ScanResult, recorded: int) -> None:
        last_synced_block = None
        if scan.scanned_to is not None and self._from_block is not None:
            if scan.scanned_to >= self._from_block:
                last_synced_block = scan.scanned_to
            else:
                logger.warning(
                    f"{self.log_prefix} {self._range} not scanned, "
                    f"cursor kept"
                )

        if last_synced_block is None and not recorded:
            return

        await self.ledger.save_sync_state(
            self.name,
            last_synced_block=last_synced_block,
            recorded=recorded,
        )
