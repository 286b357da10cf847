"""Address and transaction id validation utilities."""

from app.config.constants import UNKNOWN_ADDRESS


def validate_evm_address(address: str) -> bool:
    """
    Validate EVM wallet address format (checksum not enforced).

    Args:
        address: Wallet address

    Returns:
        True if valid
    """
    if not address or not isinstance(address, str):
        return False

    if not address.startswith("0x") or len(address) != 42:
        return False

    try:
        int(address[2:], 16)
        return True
    except ValueError:
        return False


def normalize_address(address: str | None) -> str:
    """
    Normalize a payer or receiver address for storage and lookup.

    EVM addresses are lower-cased (checksum casing is presentation only).
    Bitcoin addresses keep their case, except bech32 which is
    case-insensitive and stored lower-case.

    Args:
        address: Wallet address or None

    Returns:
        Normalized address, or ``unknown`` for empty input
    """
    if not address:
        return UNKNOWN_ADDRESS

    address = address.strip()
    if address.lower().startswith(("0x", "bc1", "tb1")):
        return address.lower()
    return address


def normalize_tx_hash(tx_hash: str) -> str:
    """
    Normalize a transaction id.

    EVM hashes get a lower-case 0x-prefixed form. Bitcoin txids are
    bare 64-char hex and are only lower-cased.

    Args:
        tx_hash: Transaction hash (with or without 0x prefix)

    Returns:
        Normalized hash
    """
    return tx_hash.strip().lower()


def evm_tx_hash(tx_hash: str | bytes) -> str:
    """
    Normalize an EVM transaction hash coming from web3.

    web3 returns HexBytes, whose ``.hex()`` output differs between
    hexbytes versions, so plain bytes are hex-encoded and prefixed.

    Args:
        tx_hash: Hash as bytes or hex string

    Returns:
        Lower-case 0x-prefixed hash
    """
    if isinstance(tx_hash, bytes | bytearray):
        tx_hash = bytes(tx_hash).hex()
    normalized = tx_hash.strip().lower()
    if not normalized.startswith("0x"):
        normalized = f"0x{normalized}"
    return normalized
