"""
Payment ledger.

Durable, deduplicated store of observed payments plus the per-monitor
scan cursors. Owns the database engine; monitors and the query API get
the ledger injected instead of opening their own connections.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.models.base import Base
from app.models.blockchain_sync_state import BlockchainSyncState
from app.models.enums import PaymentStatus
from app.models.payment import Payment
from app.repositories.payment_repository import PaymentRepository
from app.repositories.sync_state_repository import SyncStateRepository
from app.services.chain_readers.types import ChainTransfer
from app.utils.db_decorators import translate_store_errors
from app.utils.security import mask_address, mask_tx_hash
from app.utils.validation import normalize_address, normalize_tx_hash


@dataclass
class RecordResult:
    """Outcome of an idempotent insert."""

    inserted: bool
    payment: Payment | None


@dataclass
class AssetStats:
    """Aggregated payments of one asset symbol."""

    coin: str
    total_amount: Decimal
    count: int
    last_payment_at: datetime | None


class PaymentLedger:
    """
    Payment store keyed by transaction id.

    Every public coroutine opens its own session, so the ledger can be
    shared by concurrently running monitors and API handlers.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        """
        Initialize ledger.

        Args:
            database_url: SQLAlchemy async database URL
            echo: Log SQL statements
        """
        self.database_url = database_url
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_maker: async_sessionmaker[AsyncSession] | None = None

    async def connect(self, create_schema: bool = True) -> None:
        """
        Create the engine and optionally the tables.

        Args:
            create_schema: Run ``create_all`` for missing tables
        """
        if self.engine is not None:
            return

        self.engine = create_async_engine(
            self.database_url,
            echo=self.echo,
            pool_pre_ping=True,
        )
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        if create_schema:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

        logger.info("[Ledger] Connected")

    async def close(self) -> None:
        """Dispose the engine."""
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_maker = None
        logger.info("[Ledger] Closed")

    def _session(self) -> AsyncSession:
        if self.session_maker is None:
            raise RuntimeError("PaymentLedger.connect() was not called")
        return self.session_maker()

    # ====================================================================
    # PAYMENTS
    # ====================================================================

    @translate_store_errors
    async def record_if_new(
        self, transfer: ChainTransfer, user_id: int | None = None
    ) -> RecordResult:
        """
        Store a transfer unless its transaction id is already recorded.

        A repeated transaction is not an error: the stored row is
        returned with ``inserted=False``.

        Args:
            transfer: Transfer observed on chain
            user_id: Linked user, if the payer is known

        Returns:
            RecordResult
        """
        tx_hash = normalize_tx_hash(transfer.tx_hash)

        async with self._session() as session:
            repo = PaymentRepository(session)
            payment = await repo.insert_if_absent(
                tx_hash=tx_hash,
                block_number=transfer.block_number,
                coin=transfer.coin.upper(),
                asset_kind=transfer.asset_kind,
                network=transfer.network,
                token_address=transfer.token_address,
                from_address=normalize_address(transfer.from_address),
                to_address=normalize_address(transfer.to_address),
                amount=transfer.amount,
                amount_raw=str(transfer.amount_raw),
                user_id=user_id,
                status=PaymentStatus.CONFIRMED,
            )

            if payment is None:
                existing = await repo.get_by_tx_hash(tx_hash)
                logger.debug(
                    f"[Ledger] {mask_tx_hash(tx_hash)} already recorded"
                )
                return RecordResult(inserted=False, payment=existing)

            await session.commit()

        logger.success(
            f"[Ledger] Recorded {payment.amount} {payment.coin} "
            f"from {mask_address(payment.from_address)} "
            f"tx={mask_tx_hash(tx_hash)} user_id={user_id}"
        )
        return RecordResult(inserted=True, payment=payment)

    @translate_store_errors
    async def exists(self, tx_id: str) -> bool:
        """Check whether a transaction id is already recorded."""
        async with self._session() as session:
            repo = PaymentRepository(session)
            return await repo.count(tx_hash=normalize_tx_hash(tx_id)) > 0

    @translate_store_errors
    async def get_by_transaction_id(self, tx_id: str) -> Payment | None:
        """
        Get payment by transaction id.

        Args:
            tx_id: Transaction hash or txid (any casing)

        Returns:
            Payment or None
        """
        async with self._session() as session:
            return await PaymentRepository(session).get_by_tx_hash(tx_id)

    @translate_store_errors
    async def query(
        self,
        coin: str | None = None,
        from_address: str | None = None,
        to_address: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> tuple[list[Payment], int]:
        """
        List payments newest first.

        Args:
            coin: Filter by asset symbol
            from_address: Filter by payer address
            to_address: Filter by receiving address
            page: 1-based page number
            limit: Page size

        Returns:
            Tuple of (payments, total_count)
        """
        async with self._session() as session:
            return await PaymentRepository(session).find_payments(
                coin=coin,
                from_address=from_address,
                to_address=to_address,
                offset=(page - 1) * limit,
                limit=limit,
            )

    @translate_store_errors
    async def aggregate_by_asset(self) -> list[AssetStats]:
        """Totals, counts and last payment time per asset symbol."""
        async with self._session() as session:
            rows = await PaymentRepository(session).aggregate_by_coin()

        return [
            AssetStats(
                coin=coin,
                total_amount=total,
                count=count,
                last_payment_at=last_at,
            )
            for coin, total, count, last_at in rows
        ]

    # ====================================================================
    # MONITOR CURSORS
    # ====================================================================

    @translate_store_errors
    async def get_sync_state(self, monitor: str) -> BlockchainSyncState | None:
        """Get the stored cursor of a monitor, None before its first tick."""
        async with self._session() as session:
            return await SyncStateRepository(session).get_by_monitor(monitor)

    @translate_store_errors
    async def save_sync_state(
        self,
        monitor: str,
        last_synced_block: int | None = None,
        last_seen_tx: str | None = None,
        recorded: int = 0,
    ) -> BlockchainSyncState:
        """
        Advance a monitor cursor after a successful tick.

        Args:
            monitor: Monitor name
            last_synced_block: Last fully scanned block, if block-ranged
            last_seen_tx: Newest txid handled, if explorer-based
            recorded: Payments inserted during the tick

        Returns:
            Updated sync state
        """
        async with self._session() as session:
            state = await SyncStateRepository(session).get_or_create(monitor)
            if last_synced_block is not None:
                state.last_synced_block = last_synced_block
            if last_seen_tx is not None:
                state.last_seen_tx = last_seen_tx
            state.total_recorded += recorded
            state.last_error = None
            await session.commit()
            return state

    @translate_store_errors
    async def record_sync_error(self, monitor: str, message: str) -> None:
        """Keep the last tick error of a monitor for operators."""
        async with self._session() as session:
            state = await SyncStateRepository(session).get_or_create(monitor)
            state.last_error = message[:1000]
            state.error_count += 1
            await session.commit()
