#!/usr/bin/env python3
"""
Create the ledger tables without running alembic.

Usage:
    python -m scripts.init_database
"""

import asyncio
import sys

from loguru import logger

from app.config.settings import settings
from app.services.payment_ledger import PaymentLedger

logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create payments, users and blockchain_sync_state if missing."""
    ledger = PaymentLedger(settings.database_url, echo=settings.database_echo)
    logger.info("Creating ledger tables (existing tables are kept)...")
    await ledger.connect(create_schema=True)
    await ledger.close()
    logger.success("Ledger tables ready")


if __name__ == "__main__":
    asyncio.run(init_database())
