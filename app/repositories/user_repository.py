"""
User repository.

Data access layer for User model.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository
from app.utils.validation import normalize_address


class UserRepository(BaseRepository[User]):
    """User repository with wallet lookups."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_wallet_address(
        self, wallet_address: str
    ) -> User | None:
        """
        Get user by wallet address.

        Args:
            wallet_address: Wallet address (any casing)

        Returns:
            User or None
        """
        return await self.get_by(
            wallet_address=normalize_address(wallet_address)
        )

    async def register_wallet(
        self, wallet_address: str, username: str | None = None
    ) -> User:
        """
        Register a user wallet, returning the existing user if present.

        Args:
            wallet_address: Wallet address the user pays from
            username: Optional display name

        Returns:
            User owning the wallet
        """
        existing = await self.get_by_wallet_address(wallet_address)
        if existing:
            return existing

        return await self.create(
            wallet_address=normalize_address(wallet_address),
            username=username,
        )
