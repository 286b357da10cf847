"""
Payment monitor process.

Runs the payment monitors as APScheduler interval jobs and serves the
query API from the same event loop.

Usage:
    python -m jobs.scheduler
"""

import asyncio
import signal
import sys
from collections.abc import Sequence
from datetime import UTC, datetime

import aiohttp
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger
from web3 import AsyncHTTPProvider, AsyncWeb3

from app.api import create_app, start_api_server, stop_api_server
from app.config.constants import BLOCKCHAIN_TIMEOUT
from app.config.settings import Settings, settings
from app.services.chain_readers import BitcoinReader, EthereumReader
from app.services.monitors import (
    BitcoinPaymentMonitor,
    EthereumPaymentMonitor,
    PaymentMonitor,
)
from app.services.payment_ledger import PaymentLedger
from app.services.user_resolver import UserResolver
from app.utils.logging import setup_logging
from app.utils.security import mask_address


class MonitorScheduler:
    """Schedules one interval job per payment monitor."""

    def __init__(
        self,
        monitors: Sequence[PaymentMonitor],
        interval_seconds: int,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            monitors: Monitors to run
            interval_seconds: Interval between ticks of each monitor
        """
        self.monitors = list(monitors)
        self.interval_seconds = interval_seconds
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def start(self) -> None:
        """Register monitor jobs and start the scheduler. First ticks run now."""
        for monitor in self.monitors:
            self.scheduler.add_job(
                monitor.run_tick,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                id=f"payment_monitor_{monitor.name}",
                name=f"Payment monitor ({monitor.name})",
                max_instances=1,
                coalesce=True,
                next_run_time=datetime.now(UTC),
            )

        self.scheduler.start()
        logger.info(
            f"Scheduler started: {len(self.monitors)} monitors every "
            f"{self.interval_seconds}s"
        )

    async def shutdown(self, timeout: float) -> None:
        """
        Stop scheduling new ticks and wait for running ones.

        Args:
            timeout: Max seconds to wait for in-flight ticks
        """
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")

        idle = await asyncio.gather(
            *(monitor.wait_idle(timeout) for monitor in self.monitors)
        )
        for monitor, is_idle in zip(self.monitors, idle, strict=True):
            if not is_idle:
                logger.warning(
                    f"Monitor {monitor.name} still running after {timeout}s"
                )


def build_monitors(
    config: Settings, ledger: PaymentLedger
) -> list[PaymentMonitor]:
    """
    Create chain readers and monitors from settings.

    Args:
        config: Application settings
        ledger: Connected payment ledger

    Returns:
        Ethereum and Bitcoin monitors
    """
    resolver = UserResolver(ledger.session_maker)

    w3 = AsyncWeb3(
        AsyncHTTPProvider(
            config.ethereum_rpc_url,
            request_kwargs={
                "timeout": aiohttp.ClientTimeout(total=BLOCKCHAIN_TIMEOUT)
            },
        )
    )
    tokens = config.get_erc20_tokens()
    eth_reader = EthereumReader(
        w3,
        destination=config.eth_receiving_address,
        tokens=tokens,
        token_destination=config.usdt_receiving_address,
    )
    btc_reader = BitcoinReader(
        address=config.btc_receiving_address,
        base_url=config.btc_explorer_url,
        provider=config.btc_explorer_provider,
        page_size=config.btc_tx_page_size,
        max_pages=config.btc_max_pages,
    )

    logger.info(
        f"Watching ETH {mask_address(config.eth_receiving_address)}, "
        f"tokens {', '.join(t.symbol for t in tokens)}, "
        f"BTC {mask_address(config.btc_receiving_address)} "
        f"via {config.btc_explorer_provider}"
    )

    return [
        EthereumPaymentMonitor(
            eth_reader,
            ledger,
            resolver,
            scan_window=config.eth_scan_window_blocks,
            max_blocks_per_tick=config.eth_max_blocks_per_tick,
        ),
        BitcoinPaymentMonitor(btc_reader, ledger, resolver),
    ]


async def main() -> None:
    """Run monitors and query API until SIGINT/SIGTERM."""
    setup_logging(settings.log_level, settings.log_file)

    ledger = PaymentLedger(settings.database_url, echo=settings.database_echo)
    await ledger.connect()

    monitors = build_monitors(settings, ledger)
    scheduler = MonitorScheduler(monitors, settings.poll_interval_seconds)
    runner = None

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops; KeyboardInterrupt still stops the process
            logger.debug(f"Signal handler for {sig.name} not supported")

    try:
        runner = await start_api_server(
            create_app(ledger, settings, monitors),
            host=settings.api_host,
            port=settings.api_port,
        )
        scheduler.start()
        await stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        await scheduler.shutdown(timeout=settings.shutdown_timeout_seconds)
        if runner is not None:
            await stop_api_server(runner)
        for monitor in monitors:
            await monitor.close()
        await ledger.close()
        logger.info("Payment monitor stopped")


def run() -> None:
    """Console entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Payment monitor stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Payment monitor crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
