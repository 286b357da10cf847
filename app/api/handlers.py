"""
Query API handlers.

Read-only views over the payment ledger. Handlers parse parameters and
delegate to the ledger; they hold no business logic.
"""

from datetime import UTC, datetime

from aiohttp import web

from app.config.constants import API_DEFAULT_PAGE_SIZE, API_MAX_PAGE_SIZE

from .keys import LEDGER_KEY, MONITORS_KEY, SETTINGS_KEY
from .serializers import serialize_monitor, serialize_payment, serialize_stats


def _positive_int(request: web.Request, name: str, default: int) -> int:
    """Read a positive integer query parameter, 400 if invalid."""
    raw = request.query.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise web.HTTPBadRequest(reason=f"Invalid {name} parameter") from None
    if value < 1:
        raise web.HTTPBadRequest(reason=f"Invalid {name} parameter")
    return value


async def list_payments(request: web.Request) -> web.Response:
    """
    GET /api/payments

    Query parameters: coin, from, to, page (default 1),
    limit (default 50, capped at 500).
    """
    page = _positive_int(request, "page", 1)
    limit = min(
        _positive_int(request, "limit", API_DEFAULT_PAGE_SIZE),
        API_MAX_PAGE_SIZE,
    )

    ledger = request.app[LEDGER_KEY]
    settings = request.app[SETTINGS_KEY]

    payments, total = await ledger.query(
        coin=request.query.get("coin") or None,
        from_address=request.query.get("from") or None,
        to_address=request.query.get("to") or None,
        page=page,
        limit=limit,
    )

    return web.json_response(
        {
            "success": True,
            "data": [serialize_payment(p, settings) for p in payments],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": (total + limit - 1) // limit,
            },
        }
    )


async def payment_stats(request: web.Request) -> web.Response:
    """GET /api/payments/stats"""
    stats = await request.app[LEDGER_KEY].aggregate_by_asset()
    return web.json_response(
        {"success": True, "data": [serialize_stats(s) for s in stats]}
    )


async def get_payment(request: web.Request) -> web.Response:
    """GET /api/payments/{transaction_id}"""
    payment = await request.app[LEDGER_KEY].get_by_transaction_id(
        request.match_info["transaction_id"]
    )
    if payment is None:
        raise web.HTTPNotFound(reason="Payment not found")

    return web.json_response(
        {
            "success": True,
            "data": serialize_payment(payment, request.app[SETTINGS_KEY]),
        }
    )


async def health(request: web.Request) -> web.Response:
    """GET /api/health"""
    settings = request.app[SETTINGS_KEY]
    return web.json_response(
        {
            "success": True,
            "message": "Payment monitor is running",
            "timestamp": datetime.now(UTC).isoformat(),
            "wallets": settings.get_wallets(),
            "monitors": [
                serialize_monitor(m) for m in request.app[MONITORS_KEY]
            ],
        }
    )
