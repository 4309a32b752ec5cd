"""
Authentication service for user registration, login, and token management.

This module provides:
- User registration with email/password
- User login with access/refresh token issuance
- Access token refresh (the refresh token itself is not rotated)
- Logout with refresh token revocation
- Profile lookup for the authenticated user
"""

import logging
import uuid

from jose import JWTError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    AccountInactiveError,
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    NotFoundError,
)
from core.sanitizer import sanitize_text
from core.security import (
    TokenPair,
    TokenService,
    hash_password,
    hash_refresh_token,
    verify_password,
)
from models.enums import AuditAction, UserRole, UserStatus
from models.refresh_token import RefreshToken
from models.user import User
from repositories.refresh_token_repository import RefreshTokenRepository
from repositories.user_repository import UserRepository
from schemas.auth import RegisterRequest
from services.audit_service import AuditService, RequestContext

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service class for authentication operations.

    This service handles:
    - User registration
    - Login and token generation
    - Access token refresh
    - Logout and token revocation

    Token signing is delegated to the injected TokenService, so tests can
    construct the service with fixed secrets and lifetimes.
    """

    def __init__(self, session: AsyncSession, token_service: TokenService):
        """
        Initialize AuthService.

        Args:
            session: Async database session
            token_service: Signs and verifies access/refresh tokens
        """
        self.session = session
        self.token_service = token_service
        self.user_repo = UserRepository(session)
        self.token_repo = RefreshTokenRepository(session)
        self.audit_service = AuditService(session)

    async def register(
        self,
        data: RegisterRequest,
        context: RequestContext | None = None,
    ) -> tuple[User, TokenPair]:
        """
        Register a new user and generate authentication tokens.

        This method:
        1. Validates email and username uniqueness
        2. Hashes the password with Argon2id
        3. Creates the user in the database
        4. Generates access and refresh tokens
        5. Stores the refresh token hash with its absolute expiry

        Args:
            data: Validated registration payload
            context: Request origin for the audit trail

        Returns:
            Tuple of (User, TokenPair)

        Raises:
            AlreadyExistsError: If email or username already exists
        """
        if await self.user_repo.email_or_username_taken(data.email, data.username):
            logger.warning(
                f"Registration attempted with existing email or username: {data.username}"
            )
            raise AlreadyExistsError(
                "User",
                message="User with this email or username already exists",
            )

        user = User(
            email=data.email,
            username=sanitize_text(data.username),
            password_hash=hash_password(data.password),
            first_name=sanitize_text(data.first_name),
            last_name=sanitize_text(data.last_name),
            role=UserRole.USER,
            status=UserStatus.ACTIVE,
        )

        try:
            user = await self.user_repo.add(user)
        except IntegrityError:
            # Lost a race against a concurrent registration
            await self.session.rollback()
            raise AlreadyExistsError(
                "User",
                message="User with this email or username already exists",
            )

        tokens = await self._issue_tokens(user, context)
        await self.session.commit()

        logger.info(f"User registered successfully: {user.id} ({user.username})")

        await self.audit_service.log_data_change(
            user_id=user.id,
            action=AuditAction.CREATE,
            resource_type="user",
            resource_id=user.id,
            new_values=user.to_dict(),
            context=context,
        )

        return user, tokens

    async def login(
        self,
        email: str,
        password: str,
        context: RequestContext | None = None,
    ) -> tuple[User, TokenPair]:
        """
        Authenticate user and generate tokens.

        Args:
            email: User's email address
            password: User's password (plain text)
            context: Request origin for the audit trail

        Returns:
            Tuple of (User, TokenPair)

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            AccountInactiveError: Correct credentials but status is not active
        """
        user = await self.user_repo.get_by_email(email)

        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for email: {email}")
            raise InvalidCredentialsError()

        if user.status != UserStatus.ACTIVE:
            logger.warning(f"Login attempt for inactive account: {user.id} ({user.status.value})")
            raise AccountInactiveError("Account is not active")

        user = await self.user_repo.record_login(user)
        await self.token_repo.delete_expired_tokens(user_id=user.id)
        tokens = await self._issue_tokens(user, context)
        await self.session.commit()

        logger.info(f"User logged in successfully: {user.id} ({user.username})")

        await self.audit_service.log_login(user.id, context=context)

        return user, tokens

    async def refresh_access_token(self, refresh_token: str) -> tuple[User, str]:
        """
        Mint a new access token from a refresh token.

        Both checks must pass: the token signature (including its embedded
        expiry) AND the persisted record (present, not revoked, not past its
        stored expiry). The refresh token itself stays valid and unchanged.

        Args:
            refresh_token: Refresh token issued at login or registration

        Returns:
            Tuple of (User, new access token)

        Raises:
            InvalidRefreshTokenError: On any signature, record or user failure
        """
        try:
            payload = self.token_service.decode_refresh_token(refresh_token)
        except JWTError:
            raise InvalidRefreshTokenError("Invalid refresh token")

        db_token = await self.token_repo.get_valid_token(hash_refresh_token(refresh_token))
        if db_token is None:
            logger.warning("Refresh attempted with revoked, expired or unknown token")
            raise InvalidRefreshTokenError("Invalid or expired refresh token")

        if str(db_token.user_id) != payload["sub"]:
            logger.warning(f"Refresh token subject mismatch for token {db_token.id}")
            raise InvalidRefreshTokenError("Invalid refresh token")

        user = await self.user_repo.get_by_id(db_token.user_id)
        if user is None or user.status != UserStatus.ACTIVE:
            raise InvalidRefreshTokenError("User not found or inactive")

        access_token = self.token_service.create_access_token(user.id)
        logger.info(f"Access token refreshed for user: {user.id}")
        return user, access_token

    async def logout(
        self,
        refresh_token: str | None,
        user: User | None = None,
        context: RequestContext | None = None,
    ) -> None:
        """
        Revoke the given refresh token, if any, and audit the logout.

        Logout never fails: unknown or already revoked tokens are ignored.
        The audit entry is attributed to the authenticated user or, for a
        call carrying only a refresh token, to the owner of the token it
        revoked. Calls that identify nobody are not audited.

        Args:
            refresh_token: Refresh token to revoke
            user: Authenticated user, when the request carried a valid access token
            context: Request origin for the audit trail
        """
        actor_id = user.id if user is not None else None

        if refresh_token:
            db_token = await self.token_repo.get_by_token_hash(hash_refresh_token(refresh_token))
            if db_token is not None and not db_token.is_revoked:
                await self.token_repo.revoke_token(db_token.id)
                await self.session.commit()
                logger.info(f"Refresh token revoked: {db_token.id}")
                if actor_id is None:
                    actor_id = db_token.user_id

        if actor_id is not None:
            logger.info(f"User logged out: {actor_id}")
            await self.audit_service.log_logout(actor_id, context=context)

    async def get_profile(self, user_id: uuid.UUID) -> User:
        """
        Get the authenticated user's profile.

        Raises:
            NotFoundError: If the user no longer exists
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def _issue_tokens(
        self,
        user: User,
        context: RequestContext | None,
    ) -> TokenPair:
        """Mint a token pair and persist the refresh token's hash."""
        tokens = self.token_service.issue_token_pair(user.id)
        context = context or RequestContext()

        await self.token_repo.add(
            RefreshToken(
                token_hash=hash_refresh_token(tokens.refresh_token),
                user_id=user.id,
                expires_at=self.token_service.refresh_token_expires_at(),
                ip_address=context.ip_address,
                user_agent=context.user_agent,
            )
        )
        return tokens
