"""
Application constants.

Centralized constants for the application.
"""

# ========================================================================
# BLOCKCHAIN CONSTANTS
# ========================================================================

# Native coin precision
ETH_DECIMALS = 18
BTC_DECIMALS = 8  # 1 BTC = 10^8 satoshi

# Ethereum mainnet USDT (6 decimals)
USDT_MAINNET_CONTRACT_ADDRESS = "0xdac17f958d2ee523a2206206994597c13d831ec7"
USDT_DECIMALS = 6

# Widest token precision the amount column stores exactly
MAX_TOKEN_DECIMALS = 18

# keccak256("Transfer(address,address,uint256)")
ERC20_TRANSFER_TOPIC = (
    "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
)

# Payer placeholder when a UTXO input address cannot be resolved
UNKNOWN_ADDRESS = "unknown"

# Blockchain operation timeouts (in seconds)
BLOCKCHAIN_TIMEOUT = 30.0  # Standard RPC call (get_block, get_logs)
EXPLORER_HTTP_TIMEOUT = 30  # Block explorer HTTP timeout

# Bitcoin block explorer base URLs
BLOCKCHAIN_INFO_URL = "https://blockchain.info"
BLOCKSTREAM_API_URL = "https://blockstream.info/api"

# ========================================================================
# MONITOR CONSTANTS
# ========================================================================

MONITOR_ETHEREUM = "ethereum"
MONITOR_BITCOIN = "bitcoin"

DEFAULT_POLL_INTERVAL_SECONDS = 30
DEFAULT_ETH_SCAN_WINDOW_BLOCKS = 10  # Trailing window on first run
DEFAULT_ETH_MAX_BLOCKS_PER_TICK = 100  # Catch-up cap after downtime
DEFAULT_BTC_TX_PAGE_SIZE = 10
DEFAULT_BTC_MAX_PAGES = 5

# ========================================================================
# QUERY API CONSTANTS
# ========================================================================

API_DEFAULT_PAGE_SIZE = 50
API_MAX_PAGE_SIZE = 500
