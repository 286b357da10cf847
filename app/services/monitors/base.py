"""
Payment monitor base.

One monitor per chain family. A tick pulls transfers from the chain
reader, records the ones not yet in the ledger (linking them to a user
when the payer is known) and advances the durable cursor.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime

from loguru import logger

from app.services.chain_readers.types import ChainTransfer, ScanResult
from app.services.payment_ledger import PaymentLedger
from app.services.user_resolver import UserResolver
from app.utils.exceptions import (
    MalformedUpstreamDataError,
    StoreUnavailableError,
    must_log,
)
from app.utils.security import mask_tx_hash


@dataclass
class TickResult:
    """Outcome of one monitor tick."""

    monitor: str
    skipped: bool = False
    found: int = 0
    recorded: int = 0
    duplicates: int = 0
    linked: int = 0
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class PaymentMonitor:
    """
    Base class for payment monitors.

    Subclasses implement ``_collect`` (read the chain from the stored
    cursor) and ``_save_cursor`` (persist the cursor after processing).
    """

    name = "monitor"
    log_prefix = "[Monitor]"

    def __init__(self, ledger: PaymentLedger, resolver: UserResolver) -> None:
        """
        Initialize monitor.

        Args:
            ledger: Payment ledger
            resolver: User resolver
        """
        self.ledger = ledger
        self.resolver = resolver

        self._running = False
        self._idle = asyncio.Event()
        self._idle.set()
        self._range = "n/a"

        self.last_tick_at: datetime | None = None
        self.last_error: str | None = None
        self.last_result: TickResult | None = None
        self.total_recorded = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def _collect(self) -> ScanResult:
        raise NotImplementedError

    async def _save_cursor(self, scan: ScanResult, recorded: int) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release reader resources."""

    async def run_tick(self) -> TickResult:
        """
        Run one monitoring cycle.

        Never raises: failures are logged, stored on the sync state and
        reported in the result. A tick requested while the previous one
        is still running is skipped.

        Returns:
            TickResult
        """
        if self._running:
            logger.warning(
                f"{self.log_prefix} Previous tick still running, skipping"
            )
            return TickResult(monitor=self.name, skipped=True)

        self._running = True
        self._idle.clear()
        self._range = "n/a"
        result = TickResult(monitor=self.name)

        try:
            scan = await self._collect()
            result.found = len(scan.transfers)

            for transfer in scan.transfers:
                await self._process_transfer(transfer, result)

            await self._save_cursor(scan, result.recorded)

            if result.recorded:
                logger.info(
                    f"{self.log_prefix} {self._range}: "
                    f"{result.recorded} new payments "
                    f"({result.linked} linked, {result.duplicates} duplicates)"
                )
            else:
                logger.debug(
                    f"{self.log_prefix} {self._range}: no new payments"
                )

        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            message = (
                f"{self.log_prefix} Tick failed ({self._range}): {result.error}"
            )
            if must_log(e):
                logger.error(message)
            else:
                logger.exception(message)
            if isinstance(e, MalformedUpstreamDataError) and e.payload is not None:
                logger.error(
                    f"{self.log_prefix} Malformed payload: {repr(e.payload)[:500]}"
                )
            await self._store_error(result.error)

        finally:
            self.last_tick_at = datetime.now(UTC)
            self.last_error = result.error
            self.last_result = result
            self.total_recorded += result.recorded
            self._running = False
            self._idle.set()

        return result

    async def _process_transfer(
        self, transfer: ChainTransfer, result: TickResult
    ) -> None:
        """Record one transfer unless it is already in the ledger."""
        if await self.ledger.exists(transfer.tx_hash):
            result.duplicates += 1
            return

        user_id = await self.resolver.resolve(transfer.from_address)
        record = await self.ledger.record_if_new(transfer, user_id=user_id)

        if not record.inserted:
            # Recorded by a concurrent writer since the exists() check
            result.duplicates += 1
            logger.debug(
                f"{self.log_prefix} {mask_tx_hash(transfer.tx_hash)} "
                f"recorded concurrently"
            )
            return

        result.recorded += 1
        if user_id is not None:
            result.linked += 1

    async def _store_error(self, message: str) -> None:
        """Persist the tick error; the store may be the thing that failed."""
        try:
            await self.ledger.record_sync_error(self.name, message)
        except StoreUnavailableError:
            logger.warning(
                f"{self.log_prefix} Could not persist tick error"
            )

    async def wait_idle(self, timeout: float | None = None) -> bool:
        """
        Wait until no tick is running.

        Args:
            timeout: Max seconds to wait, None to wait forever

        Returns:
            True if idle, False on timeout
        """
        try:
            await asyncio.wait_for(self._idle.wait(), timeout=timeout)
            return True
        except TimeoutError:
            return False
