"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from dataclasses import dataclass

from loguru import logger
from pydantic import Field, ValidationInfo, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.config.constants import (
    BLOCKCHAIN_INFO_URL,
    BLOCKSTREAM_API_URL,
    DEFAULT_BTC_MAX_PAGES,
    DEFAULT_BTC_TX_PAGE_SIZE,
    DEFAULT_ETH_MAX_BLOCKS_PER_TICK,
    DEFAULT_ETH_SCAN_WINDOW_BLOCKS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    MAX_TOKEN_DECIMALS,
    USDT_DECIMALS,
    USDT_MAINNET_CONTRACT_ADDRESS,
)
from app.utils.validation import validate_evm_address


@dataclass(frozen=True)
class Erc20Token:
    """ERC-20 token watched by the ethereum monitor."""

    symbol: str
    contract_address: str
    decimals: int


def _validate_evm_address(value: str, field: str) -> str:
    """Validate and lower-case an EVM address."""
    if not validate_evm_address(value):
        raise ValueError(
            f"Invalid {field}: {value}. "
            "Must be 0x followed by 40 hex characters."
        )
    return value.lower()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./payments.db"
    database_echo: bool = False

    # Receiving wallets
    eth_receiving_address: str = "0x2499ade1b915e12819e8e38b1d9ed3493107e2b1"
    usdt_receiving_address: str | None = None  # defaults to ETH address
    btc_receiving_address: str = "bc1qr63h7nzs0lhzumk2stg7fneymwceu2y7erd96l"

    # Ethereum
    ethereum_rpc_url: str = "https://ethereum-rpc.publicnode.com"
    usdt_contract_address: str = USDT_MAINNET_CONTRACT_ADDRESS
    usdt_decimals: int = Field(default=USDT_DECIMALS, ge=0, le=MAX_TOKEN_DECIMALS)
    extra_erc20_tokens: str = ""  # SYMBOL:address:decimals, comma-separated

    # Bitcoin block explorer
    btc_explorer_provider: str = Field(
        default="blockchain_info",
        description="Explorer API flavour: blockchain_info or blockstream",
    )
    btc_explorer_url: str = BLOCKCHAIN_INFO_URL
    btc_tx_page_size: int = Field(default=DEFAULT_BTC_TX_PAGE_SIZE, ge=1, le=100)
    btc_max_pages: int = Field(default=DEFAULT_BTC_MAX_PAGES, ge=1)

    # Polling
    poll_interval_seconds: int = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        ge=1,
        description="Interval between monitor ticks in seconds",
    )
    eth_scan_window_blocks: int = Field(
        default=DEFAULT_ETH_SCAN_WINDOW_BLOCKS,
        ge=1,
        description="Trailing block window scanned on the first run",
    )
    eth_max_blocks_per_tick: int = Field(
        default=DEFAULT_ETH_MAX_BLOCKS_PER_TICK,
        ge=1,
        description="Maximum blocks scanned per tick while catching up",
    )

    # Query API
    api_host: str = "0.0.0.0"
    api_port: int = Field(
        default=3002, ge=1, le=65535, description="Query API HTTP port"
    )

    # Explorer links rendered in API responses
    eth_explorer_tx_url: str = "https://etherscan.io/tx/{tx_hash}"
    btc_explorer_tx_url: str = "https://www.blockchain.com/btc/tx/{tx_hash}"

    # Application
    environment: str = "production"
    log_level: str = "INFO"
    log_file: str | None = "logs/payment_monitor.log"
    shutdown_timeout_seconds: int = Field(default=30, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def apply_defaults(self) -> "Settings":
        """Fill values that depend on other settings."""
        # Token payments go to the ETH wallet unless configured
        if not self.usdt_receiving_address:
            self.usdt_receiving_address = self.eth_receiving_address
        if (
            self.btc_explorer_provider == "blockstream"
            and self.btc_explorer_url == BLOCKCHAIN_INFO_URL
        ):
            self.btc_explorer_url = BLOCKSTREAM_API_URL
        return self

    @field_validator("eth_receiving_address", "usdt_contract_address")
    @classmethod
    def validate_eth_address(cls, v: str, info: ValidationInfo) -> str:
        """Validate Ethereum address format."""
        return _validate_evm_address(v, info.field_name)

    @field_validator("usdt_receiving_address")
    @classmethod
    def validate_optional_eth_address(
        cls, v: str | None, info: ValidationInfo
    ) -> str | None:
        """Validate optional Ethereum address format."""
        if not v:
            return None
        return _validate_evm_address(v, info.field_name)

    @field_validator("btc_receiving_address")
    @classmethod
    def validate_btc_address(cls, v: str) -> str:
        """Reject empty Bitcoin address."""
        v = v.strip()
        if len(v) < 26:
            raise ValueError(f"Invalid Bitcoin address: {v}")
        return v

    @field_validator("btc_explorer_provider")
    @classmethod
    def validate_explorer_provider(cls, v: str) -> str:
        """Validate explorer flavour."""
        v = v.strip().lower()
        if v not in ("blockchain_info", "blockstream"):
            raise ValueError(
                "BTC_EXPLORER_PROVIDER must be blockchain_info or blockstream"
            )
        return v

    @field_validator("btc_explorer_url", "ethereum_rpc_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs."""
        return v.rstrip("/")

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "DATABASE_URL must start with postgresql://, "
                "postgresql+asyncpg:// or sqlite+aiosqlite://"
            )
        if v.startswith("postgresql://"):
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    def get_erc20_tokens(self) -> list[Erc20Token]:
        """
        Build the list of watched ERC-20 tokens.

        USDT is always watched; EXTRA_ERC20_TOKENS adds more tokens as
        comma-separated ``SYMBOL:address:decimals`` entries. Invalid
        entries are logged and skipped.
        """
        tokens = [
            Erc20Token(
                symbol="USDT",
                contract_address=self.usdt_contract_address,
                decimals=self.usdt_decimals,
            )
        ]

        for entry in self.extra_erc20_tokens.split(","):
            entry_stripped = entry.strip()
            if not entry_stripped:
                continue
            try:
                symbol, address, decimals = entry_stripped.split(":")
                token_decimals = int(decimals)
                if not 0 <= token_decimals <= MAX_TOKEN_DECIMALS:
                    raise ValueError(f"decimals out of range: {token_decimals}")
                tokens.append(
                    Erc20Token(
                        symbol=symbol.strip().upper(),
                        contract_address=_validate_evm_address(
                            address.strip(), "token address"
                        ),
                        decimals=token_decimals,
                    )
                )
            except ValueError:
                logger.warning(f"Invalid ERC-20 token entry: {entry_stripped}")
                continue
        return tokens

    def get_wallets(self) -> dict[str, str]:
        """Receiving wallets by asset symbol, as shown by the health check."""
        return {
            "ETH": self.eth_receiving_address,
            "USDT": self.usdt_receiving_address or self.eth_receiving_address,
            "BTC": self.btc_receiving_address,
        }


# Global settings instance
settings = Settings()
