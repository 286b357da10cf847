"""
JSON shapes of the query API.

Amounts are rendered as decimal strings so that no precision is lost on
the way to JavaScript clients.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from app.config.settings import Settings
from app.models.enums import Network
from app.models.payment import Payment
from app.services.monitors.base import PaymentMonitor
from app.services.payment_ledger import AssetStats


def format_amount(amount: Decimal | None) -> str:
    """Render a decimal without exponent or trailing zeros."""
    if amount is None:
        return "0"
    text = format(Decimal(amount).normalize(), "f")
    return text if text != "-0" else "0"


def format_datetime(value: datetime | None) -> str | None:
    """ISO-8601 in UTC; naive values (SQLite) are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def explorer_url(payment: Payment, settings: Settings) -> str | None:
    """Link to the transaction on a public block explorer."""
    if payment.network == Network.ETHEREUM:
        template = settings.eth_explorer_tx_url
    elif payment.network == Network.BITCOIN:
        template = settings.btc_explorer_tx_url
    else:
        return None
    return template.format(tx_hash=payment.tx_hash)


def serialize_payment(payment: Payment, settings: Settings) -> dict[str, Any]:
    return {
        "id": payment.id,
        "asset": payment.coin,
        "assetKind": payment.asset_kind,
        "network": payment.network,
        "tokenAddress": payment.token_address,
        "sourceAddress": payment.from_address,
        "destinationAddress": payment.to_address,
        "amount": format_amount(payment.amount),
        "amountRaw": payment.amount_raw,
        "transactionId": payment.tx_hash,
        "blockReference": payment.block_number,
        "observedAt": format_datetime(payment.created_at),
        "linkedUserId": payment.user_id,
        "status": payment.status,
        "explorerUrl": explorer_url(payment, settings),
    }


def serialize_stats(stats: AssetStats) -> dict[str, Any]:
    return {
        "asset": stats.coin,
        "totalAmount": format_amount(stats.total_amount),
        "count": stats.count,
        "lastPaymentAt": format_datetime(stats.last_payment_at),
    }


def serialize_monitor(monitor: PaymentMonitor) -> dict[str, Any]:
    return {
        "name": monitor.name,
        "running": monitor.is_running,
        "lastTickAt": format_datetime(monitor.last_tick_at),
        "lastError": monitor.last_error,
        "totalRecorded": monitor.total_recorded,
    }
