#!/usr/bin/env python3
"""
Register a user wallet so that payments from it get linked.

Usage:
    python -m scripts.link_wallet 0xAbC... --username alice
"""

import argparse
import asyncio
import sys

from loguru import logger

from app.config.settings import settings
from app.repositories.user_repository import UserRepository
from app.services.payment_ledger import PaymentLedger
from app.utils.validation import normalize_address

logger.remove()
logger.add(sys.stderr, level="INFO")


async def link_wallet(wallet_address: str, username: str | None) -> int:
    """
    Register a wallet in the user directory.

    Args:
        wallet_address: Wallet the user pays from
        username: Optional display name

    Returns:
        User id
    """
    ledger = PaymentLedger(settings.database_url)
    await ledger.connect()
    try:
        async with ledger.session_maker() as session:
            user = await UserRepository(session).register_wallet(
                wallet_address, username=username
            )
            await session.commit()
    finally:
        await ledger.close()

    logger.success(
        f"Wallet {normalize_address(wallet_address)} linked to user {user.id}"
    )
    return user.id


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Register a user wallet for payment linking"
    )
    parser.add_argument("wallet_address", help="Payer wallet address")
    parser.add_argument(
        "--username",
        default=None,
        help="Display name of the user",
    )
    args = parser.parse_args()

    asyncio.run(link_wallet(args.wallet_address, args.username))


if __name__ == "__main__":
    main()
