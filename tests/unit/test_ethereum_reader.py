"""Unit tests for EthereumReader with an in-memory node."""

from decimal import Decimal

import pytest
from web3.exceptions import Web3Exception

from app.config.constants import ERC20_TRANSFER_TOPIC
from app.config.settings import Erc20Token
from app.models.enums import AssetKind
from app.services.chain_readers.ethereum import EthereumReader, address_topic
from app.utils.exceptions import UpstreamUnavailableError


WALLET = "0x2499ade1b915e12819e8e38b1d9ed3493107e2b1"
PAYER = "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0"
OTHER = "0x" + "99" * 20
USDT = Erc20Token(
    symbol="USDT",
    contract_address="0xdac17f958d2ee523a2206206994597c13d831ec7",
    decimals=6,
)


def _tx(tx_byte: str, to: str | None, value: int, block: int) -> dict:
    return {
        "hash": bytes.fromhex(tx_byte * 32),
        "from": PAYER,
        "to": to,
        "value": value,
        "blockNumber": block,
    }


def _transfer_log(tx_byte: str, to: str, value: int, block: int) -> dict:
    return {
        "address": USDT.contract_address,
        "topics": [
            bytes.fromhex(ERC20_TRANSFER_TOPIC[2:]),
            bytes(12) + bytes.fromhex(PAYER[2:]),
            bytes(12) + bytes.fromhex(to[2:]),
        ],
        "data": value.to_bytes(32, "big"),
        "transactionHash": bytes.fromhex(tx_byte * 32),
        "blockNumber": block,
        "logIndex": 0,
    }


class FakeEth:
    """Subset of AsyncWeb3.eth used by the reader."""

    def __init__(self, latest=0, blocks=None, logs=None, failing_blocks=(), logs_error=None):
        self.latest = latest
        self.blocks = blocks or {}
        self.logs = logs or []
        self.failing_blocks = set(failing_blocks)
        self.logs_error = logs_error
        self.requested_blocks = []
        self.log_filters = []

    @property
    async def block_number(self):
        if self.latest is None:
            raise Web3Exception("node down")
        return self.latest

    async def get_block(self, number, full_transactions=False):
        self.requested_blocks.append(number)
        if number in self.failing_blocks:
            raise Web3Exception(f"block {number} unavailable")
        return {"number": number, "transactions": self.blocks.get(number, [])}

    async def get_logs(self, params):
        self.log_filters.append(params)
        if self.logs_error:
            raise self.logs_error
        return [
            log
            for log in self.logs
            if params["fromBlock"] <= log["blockNumber"] <= params["toBlock"]
        ]


class FakeWeb3:
    def __init__(self, eth: FakeEth):
        self.eth = eth


def make_reader(eth: FakeEth, tokens=(USDT,)) -> EthereumReader:
    return EthereumReader(FakeWeb3(eth), destination=WALLET.upper().replace("0X", "0x"), tokens=list(tokens))


class TestLatestBlock:
    """Tests for get_latest_block."""

    async def test_returns_block_number(self):
        reader = make_reader(FakeEth(latest=19_000_000))
        assert await reader.get_latest_block() == 19_000_000

    async def test_rpc_failure_raises_upstream_error(self):
        reader = make_reader(FakeEth(latest=None))
        with pytest.raises(UpstreamUnavailableError):
            await reader.get_latest_block()


class TestNativeTransfers:
    """Tests for native ETH detection."""

    async def test_detects_transfer_to_wallet(self):
        """Only value transfers to the wallet qualify."""
        eth = FakeEth(
            blocks={
                10: [
                    _tx("01", WALLET.upper().replace("0X", "0x"), 10**18, 10),
                    _tx("02", OTHER, 5 * 10**18, 10),
                    _tx("03", WALLET, 0, 10),  # contract call, no value
                    _tx("04", None, 10**18, 10),  # contract creation
                ],
            }
        )
        reader = make_reader(eth, tokens=())

        result = await reader.scan(10, 10)

        assert result.scanned_to == 10
        assert len(result.transfers) == 1
        transfer = result.transfers[0]
        assert transfer.tx_hash == "0x" + "01" * 32
        assert transfer.coin == "ETH"
        assert transfer.asset_kind == AssetKind.NATIVE
        assert transfer.from_address == PAYER.lower()
        assert transfer.to_address == WALLET
        assert transfer.amount == Decimal("1")
        assert transfer.block_number == 10

    async def test_malformed_transaction_skipped(self):
        """A transaction failing validation does not hide the others."""
        broken = {"hash": "0x" + "05" * 32, "to": WALLET, "value": 1}  # no from
        eth = FakeEth(blocks={7: [broken, _tx("06", WALLET, 2 * 10**18, 7)]})
        reader = make_reader(eth, tokens=())

        result = await reader.scan(7, 7)

        assert [t.tx_hash for t in result.transfers] == ["0x" + "06" * 32]

    async def test_block_failure_stops_scan(self):
        """RPC error on block b stops the scan at b - 1 without raising."""
        eth = FakeEth(
            blocks={
                20: [_tx("07", WALLET, 10**18, 20)],
                22: [_tx("08", WALLET, 10**18, 22)],
            },
            failing_blocks={21},
        )
        reader = make_reader(eth, tokens=())

        result = await reader.scan(20, 22)

        assert result.scanned_to == 20
        assert eth.requested_blocks == [20, 21]
        assert [t.tx_hash for t in result.transfers] == ["0x" + "07" * 32]

    async def test_first_block_failure_scans_nothing(self):
        eth = FakeEth(failing_blocks={30})
        reader = make_reader(eth)

        result = await reader.scan(30, 35)

        assert result.scanned_to == 29
        assert result.transfers == []
        assert eth.log_filters == []


class TestTokenTransfers:
    """Tests for ERC-20 Transfer log detection."""

    async def test_log_filter(self):
        """Logs are filtered by contract, Transfer topic and padded wallet."""
        eth = FakeEth()
        reader = make_reader(eth)

        await reader.scan(100, 105)

        params = eth.log_filters[0]
        assert params["fromBlock"] == 100
        assert params["toBlock"] == 105
        assert params["address"].lower() == USDT.contract_address
        assert params["topics"][0] == ERC20_TRANSFER_TOPIC
        assert params["topics"][1] is None
        assert params["topics"][2] == address_topic(WALLET)

    async def test_usdt_six_decimals(self):
        eth = FakeEth(logs=[_transfer_log("0a", WALLET, 1_500_000, 101)])
        reader = make_reader(eth)

        result = await reader.scan(100, 101)

        assert len(result.transfers) == 1
        transfer = result.transfers[0]
        assert transfer.coin == "USDT"
        assert transfer.asset_kind == AssetKind.ERC20
        assert transfer.amount == Decimal("1.5")
        assert transfer.token_address == USDT.contract_address
        assert transfer.from_address == PAYER.lower()

    async def test_logs_in_same_transaction_summed(self):
        eth = FakeEth(
            logs=[
                _transfer_log("0b", WALLET, 1_000_000, 101),
                _transfer_log("0b", WALLET, 2_000_000, 101),
            ]
        )
        reader = make_reader(eth)

        result = await reader.scan(101, 101)

        assert len(result.transfers) == 1
        assert result.transfers[0].amount == Decimal("3")

    async def test_log_to_other_address_ignored(self):
        """A node ignoring the topic filter does not produce false payments."""
        eth = FakeEth(logs=[_transfer_log("0c", OTHER, 1_000_000, 101)])
        reader = make_reader(eth)

        result = await reader.scan(101, 101)

        assert result.transfers == []

    async def test_log_failure_keeps_range_unscanned(self):
        eth = FakeEth(
            blocks={50: [_tx("0d", WALLET, 10**18, 50)]},
            logs_error=Web3Exception("query returned more than 10000 results"),
        )
        reader = make_reader(eth)

        result = await reader.scan(50, 52)

        assert result.scanned_to == 49
        # Native transfers already read are still reported; dedupe covers the rescan
        assert [t.coin for t in result.transfers] == ["ETH"]

    @pytest.mark.parametrize("decimals,raw,expected", [
        (8, 150_000_000, Decimal("1.5")),
        (18, 10**17, Decimal("0.1")),
    ])
    async def test_configured_decimals(self, decimals, raw, expected):
        token = Erc20Token("TKN", "0x" + "44" * 20, decimals)
        log = _transfer_log("0e", WALLET, raw, 1)
        log["address"] = token.contract_address
        reader = make_reader(FakeEth(logs=[log]), tokens=(token,))

        result = await reader.scan(1, 1)

        assert result.transfers[0].coin == "TKN"
        assert result.transfers[0].amount == expected
