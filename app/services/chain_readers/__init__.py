"""
Chain readers.

Pull inbound transfers from upstream chain data sources.
"""

from .bitcoin import BitcoinReader
from .ethereum import EthereumReader
from .types import ChainTransfer, ScanResult, to_decimal_amount


__all__ = [
    "BitcoinReader",
    "EthereumReader",
    "ChainTransfer",
    "ScanResult",
    "to_decimal_amount",
]
