"""
Masking of wallet addresses and transaction ids in log lines.

Payer addresses identify users, so logs only carry enough characters to
correlate entries.
"""


def mask_address(address: str | None) -> str:
    """
    Mask a wallet address (EVM or Bitcoin) for logging.

    Examples:
        >>> mask_address("0x2499ade1b915e12819e8e38b1d9ed3493107e2b1")
        '0x2499...e2b1'
        >>> mask_address("bc1qr63h7nzs0lhzumk2stg7fneymwceu2y7erd96l")
        'bc1qr6...d96l'
        >>> mask_address(None)
        '***'
    """
    if not address or len(address) < 10:
        return "***"
    return f"{address[:6]}...{address[-4:]}"


def mask_tx_hash(tx_hash: str | None) -> str:
    """
    Shorten a transaction id for logging.

    0x-prefixed EVM hashes keep the prefix; bare Bitcoin txids keep
    the same number of hex digits.

    Examples:
        >>> mask_tx_hash("0x" + "ab" * 32)
        '0xabababab...ababab'
        >>> mask_tx_hash("cd" * 32)
        'cdcdcdcd...cdcdcd'
    """
    if not tx_hash or len(tx_hash) < 16:
        return "***"
    head = 10 if tx_hash.startswith("0x") else 8
    return f"{tx_hash[:head]}...{tx_hash[-6:]}"
