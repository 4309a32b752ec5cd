"""
FastAPI dependencies for authentication and authorization.

This module provides:
- Current user extraction from the bearer access token
- An optional variant that never rejects
- Role guards (admin-only, admin-or-moderator)
- Request context for the audit trail
- Service and pagination dependencies
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.exceptions import (
    AccountInactiveError,
    AppException,
    InsufficientPermissionsError,
    InvalidTokenError,
    MissingTokenError,
    TokenExpiredError,
)
from core.security import TokenService, get_token_service
from models.enums import ADMIN_ROLES, ELEVATED_ROLES, UserRole
from models.user import User
from repositories.user_repository import UserRepository
from schemas.common import PaginationParams
from services import AuditService, AuthService, MessageService, RequestContext, UserService

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI - this adds the padlock icon
security = HTTPBearer(
    scheme_name="Bearer",
    description="Enter your JWT access token",
    auto_error=False,
)

DbSession = Annotated[AsyncSession, Depends(get_db)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]


async def _authenticate(
    credentials: HTTPAuthorizationCredentials | None,
    db: AsyncSession,
    token_service: TokenService,
) -> User:
    if credentials is None:
        raise MissingTokenError()

    try:
        token_data = token_service.decode_access_token(credentials.credentials)
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError as e:
        logger.warning(f"Authentication failed: invalid access token - {e}")
        raise InvalidTokenError()

    try:
        user_id = uuid.UUID(str(token_data.get("sub")))
    except ValueError:
        logger.warning("Authentication failed: malformed subject claim")
        raise InvalidTokenError()

    user = await UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        logger.warning(f"Authentication failed: user {user_id} missing or not active")
        raise AccountInactiveError()

    return user


async def get_current_user(
    db: DbSession,
    token_service: TokenServiceDep,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User:
    """
    Dependency to extract and validate current user from the access token.

    Outcomes:
    - No bearer token: 401 MissingTokenError
    - Valid signature, expired: 401 TokenExpiredError
    - Any other token failure: 403 InvalidTokenError
    - User missing or not active: 401 AccountInactiveError

    Usage:
        @router.get("/api/auth/profile")
        async def profile(current_user: CurrentUser):
            return {"email": current_user.email}
    """
    return await _authenticate(credentials, db, token_service)


async def get_optional_user(
    db: DbSession,
    token_service: TokenServiceDep,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> User | None:
    """
    Same checks as get_current_user, but any failure yields None.

    Used by endpoints that are public but show more to signed-in callers.
    """
    try:
        return await _authenticate(credentials, db, token_service)
    except AppException:
        return None


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[User | None, Depends(get_optional_user)]


def require_roles(*roles: UserRole) -> Callable[..., Awaitable[User]]:
    """
    Build a guard that admits only the given roles.

    The guard runs after authentication, so a missing principal is already
    a 401; a principal with another role gets 403.

    Example:
        @router.get("/stats", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """
    allowed = frozenset(roles)

    async def guard(current_user: CurrentUser) -> User:
        if current_user.role not in allowed:
            logger.warning(
                f"Access denied: user {current_user.id} with role "
                f"{current_user.role.value} needs one of {sorted(r.value for r in allowed)}"
            )
            raise InsufficientPermissionsError()
        return current_user

    return guard


AdminUser = Annotated[User, Depends(require_roles(*ADMIN_ROLES))]
ModeratorUser = Annotated[User, Depends(require_roles(*ELEVATED_ROLES))]


# ============================================================================
# Request Context & Pagination
# ============================================================================


def get_request_context(request: Request) -> RequestContext:
    """Client IP, user agent and request id, as recorded in audit entries."""
    return RequestContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        request_id=getattr(request.state, "request_id", None),
    )


def get_pagination(
    page: Annotated[str | None, Query(description="Page number (1-indexed)")] = None,
    limit: Annotated[str | None, Query(description="Items per page (max 100)")] = None,
) -> PaginationParams:
    """
    Read ``page``/``limit`` as raw strings so garbage clamps to defaults
    instead of failing validation.
    """
    return PaginationParams(page=page, limit=limit)


RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
PaginationDep = Annotated[PaginationParams, Depends(get_pagination)]


# ============================================================================
# Service Dependencies
# ============================================================================


def get_auth_service(db: DbSession, token_service: TokenServiceDep) -> AuthService:
    """Dependency to get an AuthService bound to the request session."""
    return AuthService(db, token_service)


def get_user_service(db: DbSession) -> UserService:
    """Dependency to get a UserService bound to the request session."""
    return UserService(db)


def get_message_service(db: DbSession) -> MessageService:
    """Dependency to get a MessageService bound to the request session."""
    return MessageService(db)


def get_audit_service(db: DbSession) -> AuditService:
    """Dependency to get an AuditService bound to the request session."""
    return AuditService(db)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]
AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
