"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment so that app.config.settings loads without a .env file
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_payments.db")
os.environ.setdefault("ETH_RECEIVING_ADDRESS", "0x2499ade1b915e12819e8e38b1d9ed3493107e2b1")
os.environ.setdefault("BTC_RECEIVING_ADDRESS", "bc1qr63h7nzs0lhzumk2stg7fneymwceu2y7erd96l")
os.environ.setdefault("ETHEREUM_RPC_URL", "http://127.0.0.1:8545")
os.environ.setdefault("LOG_FILE", "")

# Project root on PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import AsyncMock, MagicMock

import pytest
from loguru import logger

from app.config.settings import Settings
from app.models.enums import AssetKind, Network
from app.services.chain_readers.types import ChainTransfer
from app.services.payment_ledger import PaymentLedger, RecordResult


ETH_WALLET = "0x2499ade1b915e12819e8e38b1d9ed3493107e2b1"
BTC_WALLET = "bc1qr63h7nzs0lhzumk2stg7fneymwceu2y7erd96l"
PAYER_ETH = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"


def make_transfer(
    tx_hash: str = "0x" + "ab" * 32,
    coin: str = "ETH",
    amount_raw: int = 10**18,
    decimals: int = 18,
    from_address: str = PAYER_ETH.lower(),
    to_address: str = ETH_WALLET,
    asset_kind: str = AssetKind.NATIVE,
    network: str = Network.ETHEREUM,
    block_number: int | None = 100,
    token_address: str | None = None,
) -> ChainTransfer:
    """Build a ChainTransfer with sensible defaults."""
    return ChainTransfer(
        tx_hash=tx_hash,
        coin=coin,
        asset_kind=asset_kind,
        network=network,
        from_address=from_address,
        to_address=to_address,
        amount_raw=amount_raw,
        decimals=decimals,
        block_number=block_number,
        token_address=token_address,
    )


def make_btc_transfer(
    txid: str, satoshi: int, payer: str = "1BoatSLRHtKNngkdXEeobR76b53LETtpyT"
) -> ChainTransfer:
    """Build a Bitcoin ChainTransfer."""
    return make_transfer(
        tx_hash=txid,
        coin="BTC",
        amount_raw=satoshi,
        decimals=8,
        from_address=payer,
        to_address=BTC_WALLET,
        asset_kind=AssetKind.UTXO,
        network=Network.BITCOIN,
        block_number=800_000,
    )


@pytest.fixture
def test_settings():
    """Settings built from the test environment only."""
    return Settings(_env_file=None)


@pytest.fixture
async def ledger(tmp_path):
    """Payment ledger on a temporary SQLite file."""
    ledger = PaymentLedger(f"sqlite+aiosqlite:///{tmp_path / 'payments.db'}")
    await ledger.connect()
    yield ledger
    await ledger.close()


@pytest.fixture
def mock_ledger():
    """Mock PaymentLedger for monitor tests without a database."""
    ledger = MagicMock()
    ledger.exists = AsyncMock(return_value=False)
    ledger.record_if_new = AsyncMock(
        return_value=RecordResult(inserted=True, payment=MagicMock())
    )
    ledger.get_sync_state = AsyncMock(return_value=None)
    ledger.save_sync_state = AsyncMock()
    ledger.record_sync_error = AsyncMock()
    return ledger


@pytest.fixture
def mock_resolver():
    """Mock UserResolver that knows nobody."""
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=None)
    return resolver


@pytest.fixture
def transfer_factory():
    """Factory for ChainTransfer values."""
    return make_transfer


@pytest.fixture
def btc_transfer_factory():
    """Factory for Bitcoin ChainTransfer values."""
    return make_btc_transfer


@pytest.fixture
def log_messages():
    """Messages logged through loguru while the test runs."""
    messages: list[str] = []
    handler_id = logger.add(messages.append, format="{message}", level="DEBUG")
    yield messages
    logger.remove(handler_id)
