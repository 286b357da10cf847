"""
Exception handling utilities.

Defines categorized exception types for proper error handling.
"""

from sqlalchemy.exc import SQLAlchemyError
from web3.exceptions import Web3Exception


class PaymentMonitorError(Exception):
    """Base class for payment monitor errors."""


class UpstreamUnavailableError(PaymentMonitorError):
    """Raised when an RPC node or block explorer cannot be reached.

    Covers network failures, timeouts, rate limits and non-200 answers.
    The current monitor tick is aborted and retried on the next schedule.
    """


class MalformedUpstreamDataError(PaymentMonitorError):
    """Raised when an upstream response does not have the expected shape."""

    def __init__(self, message: str, payload: object | None = None) -> None:
        super().__init__(message)
        self.payload = payload


class StoreUnavailableError(PaymentMonitorError):
    """Raised when the payment ledger database cannot be used."""


# Exception categories based on handling strategy

# Must log but can continue - the tick ends, the scheduler keeps running
MUST_LOG = (
    UpstreamUnavailableError,
    MalformedUpstreamDataError,
    StoreUnavailableError,
    SQLAlchemyError,
    Web3Exception,
)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged
    """
    return isinstance(exc, MUST_LOG)

