"""
Ethereum chain reader.

This module handles:
- Native ETH transfers to the receiving wallet, block by block
- ERC-20 Transfer event logs to the token receiving wallet
- Conversion of raw values using per-asset decimals
"""

import asyncio
from collections.abc import Mapping

import aiohttp
from loguru import logger
from pydantic import ValidationError
from web3 import AsyncWeb3, Web3
from web3.exceptions import Web3Exception

from app.config.constants import BLOCKCHAIN_TIMEOUT, ERC20_TRANSFER_TOPIC, ETH_DECIMALS
from app.config.settings import Erc20Token
from app.models.enums import AssetKind, Network
from app.utils.exceptions import UpstreamUnavailableError
from app.utils.security import mask_address, mask_tx_hash

from .schemas import EvmTransaction, TransferLog
from .types import ChainTransfer, ScanResult


# Errors raised by AsyncHTTPProvider for a failed RPC call
RPC_ERRORS = (
    Web3Exception,
    aiohttp.ClientError,
    TimeoutError,
    OSError,
    ValueError,
)


def address_topic(address: str) -> str:
    """
    Encode an address as a 32-byte event topic.

    Args:
        address: 0x-prefixed address

    Returns:
        0x-prefixed, left zero-padded topic
    """
    return "0x" + address.lower()[2:].rjust(64, "0")


class EthereumReader:
    """
    Reads inbound ETH and ERC-20 transfers over JSON-RPC.

    Stateless apart from its configuration: the caller decides which
    block range to scan.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        destination: str,
        tokens: list[Erc20Token],
        token_destination: str | None = None,
        native_symbol: str = "ETH",
        native_decimals: int = ETH_DECIMALS,
        rpc_timeout: float = BLOCKCHAIN_TIMEOUT,
    ) -> None:
        """
        Initialize Ethereum reader.

        Args:
            w3: AsyncWeb3 instance
            destination: Receiving wallet for native coin
            tokens: ERC-20 tokens to watch
            token_destination: Receiving wallet for tokens (default: destination)
            native_symbol: Symbol recorded for native transfers
            native_decimals: Native coin decimals
            rpc_timeout: Timeout per RPC call in seconds
        """
        self.w3 = w3
        self.destination = destination.lower()
        self.token_destination = (token_destination or destination).lower()
        self.tokens = tokens
        self.native_symbol = native_symbol
        self.native_decimals = native_decimals
        self.rpc_timeout = rpc_timeout

    async def get_latest_block(self) -> int:
        """
        Get current block number.

        Returns:
            Latest block number

        Raises:
            UpstreamUnavailableError: If the node cannot be queried
        """
        try:
            return int(
                await asyncio.wait_for(
                    self.w3.eth.block_number, timeout=self.rpc_timeout
                )
            )
        except RPC_ERRORS as e:
            raise UpstreamUnavailableError(
                f"Failed to get latest block: {type(e).__name__}: {e}"
            ) from e

    async def scan(self, from_block: int, to_block: int) -> ScanResult:
        """
        Scan a block range for transfers to the receiving wallets.

        An RPC error on one block stops the scan there; the result then
        covers only the blocks before it. A failed token log query leaves
        the whole range unscanned. Errors are logged, never raised.

        Args:
            from_block: First block (inclusive)
            to_block: Last block (inclusive)

        Returns:
            ScanResult with transfers and the last fully scanned block
        """
        transfers: list[ChainTransfer] = []
        scanned_to = from_block - 1

        for block_number in range(from_block, to_block + 1):
            try:
                block = await asyncio.wait_for(
                    self.w3.eth.get_block(block_number, full_transactions=True),
                    timeout=self.rpc_timeout,
                )
            except RPC_ERRORS as e:
                logger.warning(
                    f"[ETH Reader] Block {block_number} fetch failed: "
                    f"{type(e).__name__}: {e}. Scan stopped at {scanned_to}"
                )
                break

            transfers.extend(self._native_transfers(block_number, block))
            scanned_to = block_number

        if scanned_to < from_block:
            return ScanResult(transfers=transfers, scanned_to=scanned_to)

        for token in self.tokens:
            try:
                transfers.extend(
                    await self._token_transfers(token, from_block, scanned_to)
                )
            except RPC_ERRORS as e:
                logger.warning(
                    f"[ETH Reader] {token.symbol} logs {from_block}-{scanned_to} "
                    f"failed: {type(e).__name__}: {e}"
                )
                return ScanResult(transfers=transfers, scanned_to=from_block - 1)

        return ScanResult(transfers=transfers, scanned_to=scanned_to)

    def _native_transfers(
        self, block_number: int, block: Mapping
    ) -> list[ChainTransfer]:
        """Extract native transfers to the receiving wallet from a block."""
        found = []

        for raw_tx in block.get("transactions", []):
            if not isinstance(raw_tx, Mapping):
                # Hash-only entry: block was fetched without full transactions
                logger.warning(
                    f"[ETH Reader] Block {block_number} returned a "
                    f"transaction without body, skipped"
                )
                continue
            try:
                tx = EvmTransaction.model_validate(dict(raw_tx))
            except ValidationError as e:
                logger.warning(
                    f"[ETH Reader] Malformed transaction in block "
                    f"{block_number} (hash={raw_tx.get('hash')!r}): "
                    f"{e.error_count()} validation errors"
                )
                continue

            if tx.to_address != self.destination or tx.value <= 0:
                continue

            found.append(
                ChainTransfer(
                    tx_hash=tx.hash,
                    coin=self.native_symbol,
                    asset_kind=AssetKind.NATIVE,
                    network=Network.ETHEREUM,
                    from_address=tx.from_address,
                    to_address=self.destination,
                    amount_raw=tx.value,
                    decimals=self.native_decimals,
                    block_number=tx.block_number or block_number,
                )
            )
            logger.debug(
                f"[ETH Reader] {self.native_symbol} transfer "
                f"{mask_tx_hash(tx.hash)} from {mask_address(tx.from_address)}"
            )

        return found

    async def _token_transfers(
        self, token: Erc20Token, from_block: int, to_block: int
    ) -> list[ChainTransfer]:
        """
        Query Transfer logs of one token addressed to the token wallet.

        Several Transfer logs to the wallet inside one transaction are
        summed, since the transaction hash identifies the payment.
        """
        logs = await asyncio.wait_for(
            self.w3.eth.get_logs(
                {
                    "fromBlock": from_block,
                    "toBlock": to_block,
                    "address": Web3.to_checksum_address(token.contract_address),
                    "topics": [
                        ERC20_TRANSFER_TOPIC,
                        None,
                        address_topic(self.token_destination),
                    ],
                }
            ),
            timeout=self.rpc_timeout,
        )

        by_tx: dict[str, ChainTransfer] = {}
        for raw_log in logs:
            try:
                log = TransferLog.model_validate(dict(raw_log))
            except ValidationError as e:
                logger.warning(
                    f"[ETH Reader] Malformed {token.symbol} log "
                    f"(tx={raw_log.get('transactionHash')!r}): "
                    f"{e.error_count()} validation errors"
                )
                continue

            if log.topics[0].lower() != ERC20_TRANSFER_TOPIC:
                continue
            if log.to_address != self.token_destination or log.value <= 0:
                continue

            previous = by_tx.get(log.transaction_hash)
            amount_raw = log.value + (previous.amount_raw if previous else 0)
            by_tx[log.transaction_hash] = ChainTransfer(
                tx_hash=log.transaction_hash,
                coin=token.symbol,
                asset_kind=AssetKind.ERC20,
                network=Network.ETHEREUM,
                from_address=(
                    previous.from_address if previous else log.from_address
                ),
                to_address=self.token_destination,
                amount_raw=amount_raw,
                decimals=token.decimals,
                block_number=log.block_number,
                token_address=token.contract_address.lower(),
            )

        if by_tx:
            logger.info(
                f"[ETH Reader] {len(by_tx)} {token.symbol} transfers "
                f"in blocks {from_block}-{to_block}"
            )
        return list(by_tx.values())
