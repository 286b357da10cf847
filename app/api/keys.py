"""Typed application keys for objects shared with the handlers."""

from aiohttp import web

from app.config.settings import Settings
from app.services.monitors.base import PaymentMonitor
from app.services.payment_ledger import PaymentLedger


LEDGER_KEY = web.AppKey("ledger", PaymentLedger)
SETTINGS_KEY = web.AppKey("settings", Settings)
MONITORS_KEY = web.AppKey("monitors", list[PaymentMonitor])
