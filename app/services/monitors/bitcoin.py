"""
Bitcoin payment monitor.

Polls the receiving address history and records confirmed payments
newer than the last transaction already handled.
"""

from app.config.constants import MONITOR_BITCOIN
from app.services.chain_readers.bitcoin import BitcoinReader
from app.services.chain_readers.types import ScanResult
from app.services.payment_ledger import PaymentLedger
from app.services.user_resolver import UserResolver
from app.utils.security import mask_tx_hash

from .base import PaymentMonitor


class BitcoinPaymentMonitor(PaymentMonitor):
    """Explorer-based monitor for the Bitcoin receiving address."""

    name = MONITOR_BITCOIN
    log_prefix = "[BTC Monitor]"

    def __init__(
        self,
        reader: BitcoinReader,
        ledger: PaymentLedger,
        resolver: UserResolver,
    ) -> None:
        super().__init__(ledger, resolver)
        self.reader = reader

    async def _collect(self) -> ScanResult:
        state = await self.ledger.get_sync_state(self.name)
        cursor = state.last_seen_tx if state else None

        self._range = (
            f"txs after {mask_tx_hash(cursor)}" if cursor else "latest txs"
        )
        return await self.reader.fetch_recent(stop_at_tx=cursor)

    async def _save_cursor(self, scan: ScanResult, recorded: int) -> None:
        if scan.cursor_tx is None and not recorded:
            return

        await self.ledger.save_sync_state(
            self.name,
            last_seen_tx=scan.cursor_tx,
            recorded=recorded,
        )

    async def close(self) -> None:
        await self.reader.close()
