"""
Payment repository.

Data access layer for recorded payments.
"""

from datetime import datetime
from decimal import Decimal, localcontext
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment
from app.repositories.base import BaseRepository
from app.utils.validation import normalize_address, normalize_tx_hash


class PaymentRepository(BaseRepository[Payment]):
    """Repository for recorded payments."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Payment, session)

    async def get_by_tx_hash(self, tx_hash: str) -> Payment | None:
        """
        Get payment by transaction hash.

        Args:
            tx_hash: Transaction hash (any casing)

        Returns:
            Payment or None
        """
        return await self.get_by(tx_hash=normalize_tx_hash(tx_hash))

    async def insert_if_absent(self, **data: Any) -> Payment | None:
        """
        Insert a payment unless its tx_hash is already stored.

        Relies on the unique constraint on ``tx_hash`` through
        ``INSERT ... ON CONFLICT DO NOTHING``, so two concurrent callers
        cannot both insert the same transaction.

        Args:
            **data: Payment column values

        Returns:
            Inserted payment, or None if the hash already existed
        """
        dialect_name = self.session.get_bind().dialect.name
        if dialect_name == "postgresql":
            insert = postgresql.insert
        elif dialect_name == "sqlite":
            insert = sqlite.insert
        else:
            raise NotImplementedError(
                f"Idempotent insert not supported for dialect {dialect_name}"
            )

        stmt = (
            insert(Payment)
            .values(**data)
            .on_conflict_do_nothing(index_elements=["tx_hash"])
            .returning(Payment.id)
        )
        result = await self.session.execute(stmt)
        new_id = result.scalar_one_or_none()
        if new_id is None:
            return None

        return await self.session.get(Payment, new_id)

    def _filter_conditions(
        self,
        coin: str | None = None,
        from_address: str | None = None,
        to_address: str | None = None,
    ) -> list:
        """Build WHERE conditions for payment listing."""
        conditions = []
        if coin:
            conditions.append(Payment.coin == coin.upper())
        if from_address:
            conditions.append(
                Payment.from_address == normalize_address(from_address)
            )
        if to_address:
            conditions.append(
                Payment.to_address == normalize_address(to_address)
            )
        return conditions

    async def find_payments(
        self,
        coin: str | None = None,
        from_address: str | None = None,
        to_address: str | None = None,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Payment], int]:
        """
        Find payments newest first, with total count for pagination.

        Args:
            coin: Filter by asset symbol
            from_address: Filter by payer address
            to_address: Filter by receiving address
            offset: Number of rows to skip
            limit: Max rows to return

        Returns:
            Tuple of (payments, total_count)
        """
        conditions = self._filter_conditions(coin, from_address, to_address)

        count_stmt = select(func.count(Payment.id))
        if conditions:
            count_stmt = count_stmt.where(and_(*conditions))
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar() or 0

        stmt = select(Payment)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = (
            stmt.order_by(Payment.created_at.desc(), Payment.id.desc())
            .offset(offset)
            .limit(limit)
        )

        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def _sum_by_coin(self) -> dict[str, Decimal]:
        """Exact amount totals per asset symbol."""
        if self.session.get_bind().dialect.name != "sqlite":
            result = await self.session.execute(
                select(Payment.coin, func.sum(Payment.amount)).group_by(
                    Payment.coin
                )
            )
            return {coin: Decimal(total or 0) for coin, total in result.all()}

        # SQLite stores amounts as text; SUM() there would go through REAL
        totals: dict[str, Decimal] = {}
        result = await self.session.execute(select(Payment.coin, Payment.amount))
        with localcontext() as ctx:
            ctx.prec = 80
            for coin, amount in result.all():
                totals[coin] = totals.get(coin, Decimal(0)) + amount
        return totals

    async def aggregate_by_coin(
        self,
    ) -> list[tuple[str, Decimal, int, datetime | None]]:
        """
        Aggregate payments per asset symbol.

        Returns:
            Rows of (coin, total_amount, count, last_payment_at)
        """
        stmt = (
            select(
                Payment.coin,
                func.count(Payment.id),
                func.max(Payment.created_at),
            )
            .group_by(Payment.coin)
            .order_by(Payment.coin)
        )
        result = await self.session.execute(stmt)
        rows = result.all()

        totals = await self._sum_by_coin()
        return [
            (coin, totals.get(coin, Decimal(0)), count, last_at)
            for coin, count, last_at in rows
        ]
