"""
Payment monitors.

One scheduled monitor per chain family.
"""

from .base import PaymentMonitor, TickResult
from .bitcoin import BitcoinPaymentMonitor
from .ethereum import EthereumPaymentMonitor


__all__ = [
    "PaymentMonitor",
    "TickResult",
    "EthereumPaymentMonitor",
    "BitcoinPaymentMonitor",
]
