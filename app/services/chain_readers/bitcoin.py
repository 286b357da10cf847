"""
Bitcoin chain reader.

Reads the transaction history of the receiving address from a public
block explorer. Two explorer flavours are supported:
- blockchain_info: ``/rawaddr/<address>?limit=N&offset=M``
- blockstream (Esplora): ``/address/<address>/txs`` and
  ``/address/<address>/txs/chain/<last_txid>`` for older pages
"""

import asyncio
from typing import Any

import aiohttp
from loguru import logger
from pydantic import ValidationError

from app.config.constants import BTC_DECIMALS, EXPLORER_HTTP_TIMEOUT
from app.models.enums import AssetKind, Network
from app.utils.exceptions import MalformedUpstreamDataError, UpstreamUnavailableError
from app.utils.security import mask_address, mask_tx_hash
from app.utils.validation import normalize_address

from .schemas import BlockchainInfoTx, EsploraTx, UtxoTransaction
from .types import ChainTransfer, ScanResult


PROVIDER_BLOCKCHAIN_INFO = "blockchain_info"
PROVIDER_BLOCKSTREAM = "blockstream"


class BitcoinReader:
    """
    Reads inbound BTC payments to one address from a block explorer.

    Only confirmed transactions are reported. All outputs of a transaction
    paying the watched address are summed into one transfer.
    """

    def __init__(
        self,
        address: str,
        base_url: str,
        provider: str = PROVIDER_BLOCKCHAIN_INFO,
        page_size: int = 10,
        max_pages: int = 5,
        timeout: float = EXPLORER_HTTP_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize Bitcoin reader.

        Args:
            address: Watched receiving address
            base_url: Explorer base URL without trailing slash
            provider: Explorer API flavour
            page_size: Transactions per request (blockchain_info only)
            max_pages: Maximum pages fetched per call
            timeout: HTTP timeout in seconds
            session: Shared aiohttp session (created lazily if None)
        """
        if provider not in (PROVIDER_BLOCKCHAIN_INFO, PROVIDER_BLOCKSTREAM):
            raise ValueError(f"Unknown BTC explorer provider: {provider}")

        self.address = address.strip()
        self._match_address = normalize_address(self.address)
        self.base_url = base_url.rstrip("/")
        self.provider = provider
        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this reader created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _get_json(self, url: str, params: dict | None = None) -> Any:
        """
        GET a JSON document from the explorer.

        Raises:
            UpstreamUnavailableError: Network error or non-200 status
            MalformedUpstreamDataError: Body is not JSON
        """
        session = await self._get_session()
        try:
            async with session.get(url, params=params) as response:
                if response.status != 200:
                    body = (await response.text())[:200]
                    raise UpstreamUnavailableError(
                        f"Explorer returned HTTP {response.status}: {body}"
                    )
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise MalformedUpstreamDataError(
                        f"Explorer returned invalid JSON: {e}"
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamUnavailableError(
                f"Explorer request failed: {type(e).__name__}: {e}"
            ) from e

    async def _fetch_page(
        self, page: int, last_txid: str | None
    ) -> tuple[list[UtxoTransaction], int]:
        """
        Fetch one page of address history, newest first.

        Entries that fail validation are logged and skipped.

        Returns:
            Valid transactions and the number of entries the explorer
            returned, malformed ones included
        """
        if self.provider == PROVIDER_BLOCKCHAIN_INFO:
            payload = await self._get_json(
                f"{self.base_url}/rawaddr/{self.address}",
                params={"limit": self.page_size, "offset": page * self.page_size},
            )
            if not isinstance(payload, dict) or not isinstance(
                payload.get("txs"), list
            ):
                raise MalformedUpstreamDataError(
                    "rawaddr response has no txs list", payload=payload
                )
            raw_items = payload["txs"]
            model = BlockchainInfoTx
        else:
            url = f"{self.base_url}/address/{self.address}/txs"
            if last_txid:
                url = f"{url}/chain/{last_txid}"
            payload = await self._get_json(url)
            if not isinstance(payload, list):
                raise MalformedUpstreamDataError(
                    "Esplora txs response is not a list", payload=payload
                )
            raw_items = payload
            model = EsploraTx

        transactions = []
        for raw in raw_items:
            try:
                transactions.append(model.model_validate(raw).to_utxo())
            except ValidationError as e:
                tx_id = None
                if isinstance(raw, dict):
                    tx_id = raw.get("hash") or raw.get("txid")
                logger.warning(
                    f"[BTC Reader] Malformed explorer entry {tx_id!r}: "
                    f"{e.error_count()} validation errors"
                )
        return transactions, len(raw_items)

    def _to_transfer(self, tx: UtxoTransaction) -> ChainTransfer | None:
        """Sum outputs paying the watched address, None if there are none."""
        amount_raw = sum(
            output.value
            for output in tx.outputs
            if output.address
            and normalize_address(output.address) == self._match_address
        )
        if amount_raw <= 0:
            return None

        return ChainTransfer(
            tx_hash=tx.txid,
            coin="BTC",
            asset_kind=AssetKind.UTXO,
            network=Network.BITCOIN,
            from_address=normalize_address(tx.payer_address),
            to_address=self.address,
            amount_raw=amount_raw,
            decimals=BTC_DECIMALS,
            block_number=tx.block_height,
        )

    async def fetch_recent(self, stop_at_tx: str | None = None) -> ScanResult:
        """
        Fetch confirmed inbound payments newer than ``stop_at_tx``.

        Pages backwards through the address history until the cursor
        transaction is seen or ``max_pages`` is reached. Without a cursor
        only the first page is read.

        Args:
            stop_at_tx: Newest txid handled by the previous call

        Returns:
            ScanResult with transfers and ``cursor_tx`` set to the newest
            confirmed txid seen (or ``stop_at_tx`` if nothing newer)

        Raises:
            UpstreamUnavailableError: Explorer unreachable
            MalformedUpstreamDataError: Explorer response unusable
        """
        stop_at = stop_at_tx.lower() if stop_at_tx else None
        max_pages = self.max_pages if stop_at else 1

        transfers: list[ChainTransfer] = []
        newest_confirmed: str | None = None
        last_txid: str | None = None
        seen: set[str] = set()
        reached_cursor = False

        for page in range(max_pages):
            transactions, raw_count = await self._fetch_page(page, last_txid)
            if not raw_count:
                break

            for tx in transactions:
                if tx.txid == stop_at:
                    reached_cursor = True
                    break
                if tx.txid in seen or not tx.is_confirmed:
                    continue
                seen.add(tx.txid)

                if newest_confirmed is None:
                    newest_confirmed = tx.txid

                transfer = self._to_transfer(tx)
                if transfer:
                    transfers.append(transfer)
                    logger.debug(
                        f"[BTC Reader] Payment {mask_tx_hash(tx.txid)} from "
                        f"{mask_address(transfer.from_address)}: "
                        f"{transfer.amount} BTC"
                    )

            if reached_cursor:
                break
            if self.provider == PROVIDER_BLOCKCHAIN_INFO:
                # Short page means the end of history
                if raw_count < self.page_size:
                    break
            elif transactions:
                last_txid = transactions[-1].txid
            else:
                # No valid txid to continue the Esplora chain from
                break

        if stop_at and not reached_cursor:
            logger.warning(
                f"[BTC Reader] Cursor {mask_tx_hash(stop_at)} not found within "
                f"{max_pages} pages; older history not scanned"
            )

        return ScanResult(
            transfers=transfers,
            cursor_tx=newest_confirmed or stop_at,
        )
