"""
Chain reader result types.

Readers turn upstream responses into ChainTransfer values; the monitors
only ever see these types.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from app.models.enums import AssetKind, Network


def to_decimal_amount(raw_value: int, decimals: int) -> Decimal:
    """
    Convert a smallest-unit integer into the asset's natural unit.

    Built from the decimal string so that no context precision or
    rounding applies, e.g. ``to_decimal_amount(1_000_000, 6) == 1``.

    Args:
        raw_value: Amount in smallest unit (wei, satoshi, token units)
        decimals: Decimal exponent of the asset

    Returns:
        Exact decimal amount
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    return Decimal(f"{int(raw_value)}E-{decimals}")


@dataclass(frozen=True)
class ChainTransfer:
    """Inbound transfer observed on chain."""

    tx_hash: str
    coin: str
    asset_kind: str
    network: str
    from_address: str
    to_address: str
    amount_raw: int
    decimals: int
    block_number: int | None
    token_address: str | None = None

    def __post_init__(self) -> None:
        if self.asset_kind not in AssetKind.ALL:
            raise ValueError(f"Unknown asset kind: {self.asset_kind}")
        if self.network not in Network.ALL:
            raise ValueError(f"Unknown network: {self.network}")

    @property
    def amount(self) -> Decimal:
        """Amount in the asset's natural unit."""
        return to_decimal_amount(self.amount_raw, self.decimals)


@dataclass
class ScanResult:
    """
    Transfers found by one reader invocation.

    ``scanned_to`` is the last block fully scanned by block-ranged readers
    (``from_block - 1`` when nothing could be scanned); ``cursor_tx`` is the
    newest confirmed transaction seen by explorer readers.
    """

    transfers: list[ChainTransfer] = field(default_factory=list)
    scanned_to: int | None = None
    cursor_tx: str | None = None
