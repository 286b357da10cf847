"""Unit tests for smallest-unit to natural-unit conversion."""

from decimal import Decimal

import pytest

from app.services.chain_readers.types import ChainTransfer, to_decimal_amount


class TestToDecimalAmount:
    """Tests for to_decimal_amount."""

    @pytest.mark.parametrize(
        "raw,decimals,expected",
        [
            (1_000_000, 6, Decimal("1")),  # USDT
            (1_500_000, 6, Decimal("1.5")),
            (1, 6, Decimal("0.000001")),
            (100_000_000, 8, Decimal("1")),  # BTC
            (100_000, 8, Decimal("0.001")),
            (1, 8, Decimal("0.00000001")),
            (10**18, 18, Decimal("1")),  # ETH
            (1, 18, Decimal("0.000000000000000001")),
            (123456789012345678901, 18, Decimal("123.456789012345678901")),
        ],
    )
    def test_exact_conversion(self, raw, decimals, expected):
        """Conversion is exact for 6, 8 and 18 decimals."""
        assert to_decimal_amount(raw, decimals) == expected

    def test_no_precision_loss_beyond_context(self):
        """Amounts wider than the default 28-digit context stay exact."""
        raw = 12345678901234567890123456789012345
        amount = to_decimal_amount(raw, 18)
        assert str(amount) == "12345678901234567.890123456789012345"

    def test_zero_decimals(self):
        """Zero decimals returns the raw integer."""
        assert to_decimal_amount(42, 0) == Decimal("42")

    def test_negative_decimals_rejected(self):
        """Negative decimals are a configuration error."""
        with pytest.raises(ValueError):
            to_decimal_amount(1, -1)


def test_chain_transfer_amount_uses_decimals():
    """ChainTransfer.amount applies the asset decimals."""
    transfer = ChainTransfer(
        tx_hash="0x" + "00" * 32,
        coin="USDT",
        asset_kind="erc20",
        network="ethereum",
        from_address="0x" + "11" * 20,
        to_address="0x" + "22" * 20,
        amount_raw=25_000_000,
        decimals=6,
        block_number=1,
        token_address="0x" + "33" * 20,
    )

    assert transfer.amount == Decimal("25")


@pytest.mark.parametrize(
    "asset_kind,network",
    [("bep20", "ethereum"), ("native", "tron")],
)
def test_chain_transfer_rejects_unknown_kind_or_network(asset_kind, network):
    with pytest.raises(ValueError):
        ChainTransfer(
            tx_hash="0x" + "00" * 32,
            coin="ETH",
            asset_kind=asset_kind,
            network=network,
            from_address="0x" + "11" * 20,
            to_address="0x" + "22" * 20,
            amount_raw=1,
            decimals=18,
            block_number=1,
        )
