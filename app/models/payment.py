"""
Payment model.

One inbound transfer to a platform receiving address, recorded exactly
once per chain transaction.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.enums import PaymentStatus
from app.models.types import BigMoneyType


class Payment(Base):
    """
    Recorded inbound payment.

    Rows are created by the payment monitors and never updated or
    deleted afterwards. ``tx_hash`` carries a unique constraint, which is
    what makes insertion idempotent under concurrent monitors.
    """

    __tablename__ = "payments"

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Transaction identification (normalized, see app.utils.validation)
    tx_hash: Mapped[str] = mapped_column(
        String(80), nullable=False, unique=True
    )
    block_number: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )

    # Asset
    coin: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True
    )  # ETH, USDT, BTC
    asset_kind: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # native, erc20, utxo
    network: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # ethereum, bitcoin
    token_address: Mapped[str | None] = mapped_column(
        String(42), nullable=True
    )  # null for native coins

    # Addresses (EVM addresses lower-cased)
    from_address: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True
    )
    to_address: Mapped[str] = mapped_column(
        String(100), nullable=False
    )

    # Amount in the asset's natural unit
    amount: Mapped[Decimal] = mapped_column(BigMoneyType, nullable=False)
    amount_raw: Mapped[str] = mapped_column(
        String(100), nullable=False
    )  # smallest-unit integer (wei, satoshi)

    # Linked user (best-effort, may stay empty)
    user_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True, index=True
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.CONFIRMED
    )

    # Time the monitor observed the payment, not the block time
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Payment(tx_hash={self.tx_hash[:16]}..., "
            f"coin={self.coin}, amount={self.amount}, "
            f"user_id={self.user_id})>"
        )


# Newest-first listing is the default query pattern
Index("idx_payments_created_at_desc", Payment.created_at.desc())
