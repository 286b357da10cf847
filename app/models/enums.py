"""
Enumerations shared by payment models.

Plain string constants are stored in the database so that rows stay
readable from SQL and from the JSON API without a mapping layer.
"""


class AssetKind:
    """How an asset is transferred on chain."""

    NATIVE = "native"  # Native coin of an account-based chain (ETH)
    ERC20 = "erc20"  # Token transfer decoded from Transfer event logs
    UTXO = "utxo"  # Output of a UTXO-chain transaction (BTC)

    ALL = (NATIVE, ERC20, UTXO)


class Network:
    """Chain family a payment belongs to."""

    ETHEREUM = "ethereum"
    BITCOIN = "bitcoin"

    ALL = (ETHEREUM, BITCOIN)


class PaymentStatus:
    """Payment status constants.

    Only confirmed payments are recorded; reorgs are not modelled.
    """

    CONFIRMED = "confirmed"
