"""
Query API server.

Builds the aiohttp application and runs it next to the scheduler in the
same event loop.
"""

import asyncio
from collections.abc import Sequence

from aiohttp import web
from loguru import logger

from app.config.settings import Settings
from app.services.monitors.base import PaymentMonitor
from app.services.payment_ledger import PaymentLedger

from . import handlers
from .keys import LEDGER_KEY, MONITORS_KEY, SETTINGS_KEY
from .middleware import error_middleware


def create_app(
    ledger: PaymentLedger,
    settings: Settings,
    monitors: Sequence[PaymentMonitor] = (),
) -> web.Application:
    """
    Create the query API application.

    Args:
        ledger: Connected payment ledger
        settings: Application settings (wallets, explorer links)
        monitors: Monitors reported by the health endpoint

    Returns:
        aiohttp application
    """
    app = web.Application(middlewares=[error_middleware])
    app[LEDGER_KEY] = ledger
    app[SETTINGS_KEY] = settings
    app[MONITORS_KEY] = list(monitors)

    # /stats is registered before the dynamic transaction route
    app.router.add_get("/api/payments", handlers.list_payments)
    app.router.add_get("/api/payments/stats", handlers.payment_stats)
    app.router.add_get(
        "/api/payments/{transaction_id}", handlers.get_payment
    )
    app.router.add_get("/api/health", handlers.health)

    return app


async def start_api_server(
    app: web.Application,
    host: str = "0.0.0.0",
    port: int = 3002,
) -> web.AppRunner:
    """
    Start the query API server.

    Args:
        app: Application from ``create_app``
        host: Host to bind to
        port: Port to bind to

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(app, access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"[API] Query API started on {host}:{port}")
    logger.info(f"  - Payments: http://{host}:{port}/api/payments")
    logger.info(f"  - Stats: http://{host}:{port}/api/payments/stats")
    logger.info(f"  - Health: http://{host}:{port}/api/health")

    return runner


async def stop_api_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop the query API server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("[API] Stopping query API...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("[API] Query API stopped")
    except TimeoutError:
        logger.warning(f"[API] Cleanup timed out after {timeout}s")
