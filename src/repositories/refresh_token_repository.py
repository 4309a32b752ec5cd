"""
RefreshToken repository for token management operations.

This module provides database operations for the RefreshToken model,
including hashed lookups, validity checks, revocation and cleanup.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.refresh_token import RefreshToken
from repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """
    Repository for RefreshToken model operations.

    Extends BaseRepository with token-specific operations:
    - Token hash lookups
    - Token validation (expiry, revocation)
    - Single-token and per-user revocation
    - Expired token cleanup
    """

    def __init__(self, session: AsyncSession):
        super().__init__(RefreshToken, session)

    async def get_by_token_hash(self, token_hash: str) -> RefreshToken | None:
        """
        Get refresh token by its hash, whatever its state.

        Example:
            token_hash = hash_refresh_token(jwt_token)
            db_token = await token_repo.get_by_token_hash(token_hash)
        """
        query = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_valid_token(self, token_hash: str) -> RefreshToken | None:
        """
        Get a refresh token only if it is neither revoked nor expired.

        The expiry comparison runs in SQL against the stored absolute expiry,
        independent of the expiry embedded in the token itself.

        Args:
            token_hash: SHA-256 hash of the refresh token

        Returns:
            RefreshToken instance, or None if missing, revoked or expired
        """
        query = select(RefreshToken).where(
            RefreshToken.token_hash == token_hash,
            RefreshToken.is_revoked.is_(False),
            RefreshToken.expires_at > datetime.now(UTC),
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def revoke_token(self, token_id: uuid.UUID) -> None:
        """
        Revoke a specific refresh token.

        Sets is_revoked=True and records revocation timestamp.
        Used during logout.

        Example:
            await token_repo.revoke_token(refresh_token.id)
        """
        await self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.id == token_id)
            .values(
                is_revoked=True,
                revoked_at=datetime.now(UTC),
            )
        )
        await self.session.flush()

    async def revoke_user_tokens(self, user_id: uuid.UUID) -> int:
        """
        Revoke all refresh tokens for a user.

        Used during:
        - Password change (force re-authentication)
        - Account deletion

        Returns:
            Number of tokens revoked

        Example:
            count = await token_repo.revoke_user_tokens(user.id)
            logger.info(f"Revoked {count} tokens for user {user.id}")
        """
        result = await self.session.execute(
            update(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.is_revoked.is_(False),
            )
            .values(
                is_revoked=True,
                revoked_at=datetime.now(UTC),
            )
        )
        await self.session.flush()
        return result.rowcount

    async def delete_expired_tokens(
        self,
        user_id: uuid.UUID | None = None,
        before_date: datetime | None = None,
    ) -> int:
        """
        Delete expired refresh tokens.

        Args:
            user_id: Limit cleanup to one user's tokens
            before_date: Delete tokens expired before this date (default: now)

        Returns:
            Number of tokens deleted

        Example:
            count = await token_repo.delete_expired_tokens(user_id=user.id)
        """
        if before_date is None:
            before_date = datetime.now(UTC)

        statement = delete(RefreshToken).where(RefreshToken.expires_at < before_date)
        if user_id is not None:
            statement = statement.where(RefreshToken.user_id == user_id)

        result = await self.session.execute(statement)
        await self.session.flush()
        return result.rowcount
