"""Unit tests for the monitor scheduler wiring."""

from unittest.mock import AsyncMock, MagicMock

from app.services.monitors import BitcoinPaymentMonitor, EthereumPaymentMonitor
from jobs.scheduler import MonitorScheduler, build_monitors


def fake_monitor(name: str) -> MagicMock:
    monitor = MagicMock()
    monitor.name = name
    monitor.run_tick = AsyncMock()
    monitor.wait_idle = AsyncMock(return_value=True)
    return monitor


class TestMonitorScheduler:
    """APScheduler job registration."""

    async def test_one_job_per_monitor(self):
        monitors = [fake_monitor("ethereum"), fake_monitor("bitcoin")]
        scheduler = MonitorScheduler(monitors, interval_seconds=15)

        scheduler.start()
        try:
            jobs = {job.id: job for job in scheduler.scheduler.get_jobs()}
            assert set(jobs) == {
                "payment_monitor_ethereum",
                "payment_monitor_bitcoin",
            }
            job = jobs["payment_monitor_bitcoin"]
            assert job.max_instances == 1
            assert job.coalesce is True
            assert job.trigger.interval.total_seconds() == 15
            assert scheduler.running
        finally:
            await scheduler.shutdown(timeout=1)

        assert not scheduler.running
        for monitor in monitors:
            monitor.wait_idle.assert_awaited_once_with(1)

    async def test_shutdown_reports_busy_monitor(self):
        busy = fake_monitor("bitcoin")
        busy.wait_idle.return_value = False
        scheduler = MonitorScheduler([busy], interval_seconds=30)

        # Never started: shutdown still waits for the monitor
        await scheduler.shutdown(timeout=0.1)

        busy.wait_idle.assert_awaited_once_with(0.1)


def test_build_monitors(test_settings):
    ledger = MagicMock()

    monitors = build_monitors(test_settings, ledger)

    eth, btc = monitors
    assert isinstance(eth, EthereumPaymentMonitor)
    assert isinstance(btc, BitcoinPaymentMonitor)
    assert eth.scan_window == test_settings.eth_scan_window_blocks
    assert eth.reader.destination == test_settings.eth_receiving_address
    assert btc.reader.address == test_settings.btc_receiving_address
    assert btc.reader.provider == test_settings.btc_explorer_provider
