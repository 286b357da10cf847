"""
User resolver.

Links a payer address to a registered user of the platform.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config.constants import UNKNOWN_ADDRESS
from app.repositories.user_repository import UserRepository
from app.utils.db_decorators import translate_store_errors
from app.utils.security import mask_address
from app.utils.validation import normalize_address


class UserResolver:
    """Best-effort lookup of users by wallet address."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    @translate_store_errors
    async def resolve(self, address: str | None) -> int | None:
        """
        Find the user owning a wallet address.

        Args:
            address: Payer address (any casing)

        Returns:
            User id, or None if the address is unknown or unregistered
        """
        normalized = normalize_address(address)
        if normalized == UNKNOWN_ADDRESS:
            return None

        async with self.session_maker() as session:
            user = await UserRepository(session).get_by_wallet_address(
                normalized
            )

        if user is None:
            return None

        logger.debug(
            f"[Resolver] {mask_address(normalized)} belongs to user {user.id}"
        )
        return user.id
