"""
Validated shapes of upstream chain data.

Every transaction, log or explorer entry is parsed into one of these
models before use. Anything that fails validation is rejected by the
reader (logged and skipped) instead of leaking missing fields downstream.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.utils.validation import evm_tx_hash


def _hex_value(value: Any) -> Any:
    """Turn bytes into 0x-prefixed hex, leave everything else untouched."""
    if isinstance(value, bytes | bytearray):
        return "0x" + bytes(value).hex()
    return value


def _int_value(value: Any) -> Any:
    """Accept 0x-prefixed hex quantities as returned by raw JSON-RPC."""
    if isinstance(value, str) and value.lower().startswith("0x"):
        return int(value, 16)
    return value


# ========================================================================
# ETHEREUM (JSON-RPC)
# ========================================================================


class EvmTransaction(BaseModel):
    """Transaction from ``eth_getBlockByNumber`` with full transactions."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str
    from_address: str = Field(alias="from")
    to_address: str | None = Field(default=None, alias="to")
    value: int = Field(ge=0)
    block_number: int | None = Field(default=None, alias="blockNumber")

    @field_validator("hash", mode="before")
    @classmethod
    def normalize_hash(cls, v: Any) -> Any:
        if isinstance(v, bytes | bytearray | str):
            return evm_tx_hash(v)
        return v

    @field_validator("value", "block_number", mode="before")
    @classmethod
    def parse_quantity(cls, v: Any) -> Any:
        return _int_value(v)

    @field_validator("from_address", "to_address")
    @classmethod
    def lower_address(cls, v: str | None) -> str | None:
        return v.lower() if v else None


class TransferLog(BaseModel):
    """ERC-20 ``Transfer(address,address,uint256)`` event log."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    address: str
    topics: list[str]
    data: str
    transaction_hash: str = Field(alias="transactionHash")
    block_number: int = Field(alias="blockNumber")
    log_index: int = Field(default=0, alias="logIndex")

    @field_validator("topics", mode="before")
    @classmethod
    def hex_topics(cls, v: Any) -> Any:
        if isinstance(v, list | tuple):
            return [_hex_value(topic) for topic in v]
        return v

    @field_validator("data", mode="before")
    @classmethod
    def hex_data(cls, v: Any) -> Any:
        return _hex_value(v)

    @field_validator("transaction_hash", mode="before")
    @classmethod
    def normalize_hash(cls, v: Any) -> Any:
        if isinstance(v, bytes | bytearray | str):
            return evm_tx_hash(v)
        return v

    @field_validator("block_number", "log_index", mode="before")
    @classmethod
    def parse_quantity(cls, v: Any) -> Any:
        return _int_value(v)

    @model_validator(mode="after")
    def check_transfer_shape(self) -> "TransferLog":
        """Transfer has two indexed addresses and one uint256 in data."""
        if len(self.topics) != 3:
            raise ValueError(
                f"Transfer log must have 3 topics, got {len(self.topics)}"
            )
        if any(len(topic) != 66 for topic in self.topics):
            raise ValueError("Transfer log topics must be 32 bytes")
        if len(self.data) != 66:
            raise ValueError("Transfer log data must be a single uint256")
        return self

    @property
    def from_address(self) -> str:
        """Sender decoded from topic 1."""
        return "0x" + self.topics[1][-40:].lower()

    @property
    def to_address(self) -> str:
        """Recipient decoded from topic 2."""
        return "0x" + self.topics[2][-40:].lower()

    @property
    def value(self) -> int:
        """Transferred amount in token units."""
        return int(self.data, 16)


# ========================================================================
# BITCOIN (block explorer REST)
# ========================================================================


class UtxoOutput(BaseModel):
    """Transaction output in explorer-neutral form."""

    address: str | None = None
    value: int = Field(ge=0)


class UtxoTransaction(BaseModel):
    """Transaction touching the watched address, explorer-neutral."""

    txid: str
    block_height: int | None = None
    input_addresses: list[str | None] = Field(default_factory=list)
    outputs: list[UtxoOutput]

    @field_validator("txid")
    @classmethod
    def lower_txid(cls, v: str) -> str:
        return v.strip().lower()

    @property
    def is_confirmed(self) -> bool:
        return self.block_height is not None

    @property
    def payer_address(self) -> str | None:
        """Address of the first input, when the explorer resolved it."""
        if self.input_addresses:
            return self.input_addresses[0]
        return None


class BlockchainInfoPrevOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    addr: str | None = None


class BlockchainInfoInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prev_out: BlockchainInfoPrevOut | None = None


class BlockchainInfoOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    addr: str | None = None
    value: int = Field(ge=0)


class BlockchainInfoTx(BaseModel):
    """Entry of ``txs`` in blockchain.info ``/rawaddr/<address>``."""

    model_config = ConfigDict(extra="ignore")

    hash: str
    block_height: int | None = None
    inputs: list[BlockchainInfoInput] = Field(default_factory=list)
    out: list[BlockchainInfoOutput]

    def to_utxo(self) -> UtxoTransaction:
        return UtxoTransaction(
            txid=self.hash,
            block_height=self.block_height,
            input_addresses=[
                item.prev_out.addr if item.prev_out else None
                for item in self.inputs
            ],
            outputs=[
                UtxoOutput(address=output.addr, value=output.value)
                for output in self.out
            ],
        )


class EsploraStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    confirmed: bool = False
    block_height: int | None = None


class EsploraPrevOut(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scriptpubkey_address: str | None = None


class EsploraInput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    prevout: EsploraPrevOut | None = None


class EsploraOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scriptpubkey_address: str | None = None
    value: int = Field(ge=0)


class EsploraTx(BaseModel):
    """Entry of Blockstream Esplora ``/address/<address>/txs``."""

    model_config = ConfigDict(extra="ignore")

    txid: str
    status: EsploraStatus = Field(default_factory=EsploraStatus)
    vin: list[EsploraInput] = Field(default_factory=list)
    vout: list[EsploraOutput]

    def to_utxo(self) -> UtxoTransaction:
        return UtxoTransaction(
            txid=self.txid,
            block_height=(
                self.status.block_height if self.status.confirmed else None
            ),
            input_addresses=[
                item.prevout.scriptpubkey_address if item.prevout else None
                for item in self.vin
            ],
            outputs=[
                UtxoOutput(address=output.scriptpubkey_address, value=output.value)
                for output in self.vout
            ],
        )
