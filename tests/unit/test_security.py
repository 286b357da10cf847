"""Unit tests for log masking helpers."""

import pytest

from app.utils.security import mask_address, mask_tx_hash


@pytest.mark.parametrize(
    "address,expected",
    [
        ("0x2499ade1b915e12819e8e38b1d9ed3493107e2b1", "0x2499...e2b1"),
        ("1BoatSLRHtKNngkdXEeobR76b53LETtpyT", "1BoatS...tpyT"),
        ("unknown", "***"),
        (None, "***"),
    ],
)
def test_mask_address(address, expected):
    assert mask_address(address) == expected


def test_mask_tx_hash_keeps_evm_prefix():
    assert mask_tx_hash("0x" + "ab" * 32) == "0xabababab...ababab"


def test_mask_tx_hash_bitcoin_txid():
    assert mask_tx_hash("cd" * 32) == "cdcdcdcd...cdcdcd"


def test_mask_tx_hash_short_values_hidden():
    assert mask_tx_hash("0xdeadbeef") == "***"
    assert mask_tx_hash(None) == "***"
