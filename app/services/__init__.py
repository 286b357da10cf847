"""
Services.

Business logic layer.
"""

from app.services.payment_ledger import AssetStats, PaymentLedger, RecordResult
from app.services.user_resolver import UserResolver


__all__ = [
    "AssetStats",
    "PaymentLedger",
    "RecordResult",
    "UserResolver",
]
