"""
Authentication API routes.

This module provides REST endpoints for:
- User registration
- User login
- Access token refresh
- User logout
- Current user profile
"""

import logging

from fastapi import APIRouter, Request, status

from api.dependencies import AuthServiceDep, CurrentUser, OptionalUser, RequestContextDep
from core.config import settings
from core.rate_limit import limiter
from schemas.auth import (
    AuthData,
    LoginRequest,
    LogoutRequest,
    RefreshData,
    RefreshRequest,
    RegisterRequest,
)
from schemas.common import ApiResponse, StatusResponse
from schemas.user import UserData, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Register a new user account with email and password.

    **Password Requirements:**
    - Minimum 8 characters
    - At least 1 uppercase letter
    - At least 1 lowercase letter
    - At least 1 digit

    **Rate Limit:** Configurable via RATE_LIMIT_REGISTER

    Returns the created user and authentication tokens.
    """,
)
@limiter.limit(settings.rate_limit_register)
async def register(
    request: Request,
    user_data: RegisterRequest,
    auth_service: AuthServiceDep,
    context: RequestContextDep,
) -> ApiResponse[AuthData]:
    """
    Register a new user.

    Raises:
        400: Validation failure, or email/username already exists
    """
    user, tokens = await auth_service.register(user_data, context=context)

    return ApiResponse(
        message="User registered successfully",
        data=AuthData(
            user=UserResponse.model_validate(user),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
    )


@router.post(
    "/login",
    response_model=ApiResponse[AuthData],
    summary="Login with email and password",
    description="""
    Authenticate with email and password to receive JWT tokens.

    **Rate Limit:** Configurable via RATE_LIMIT_LOGIN

    Returns access token (15 min expiry) and refresh token (7 day expiry).
    """,
)
@limiter.limit(settings.rate_limit_login)
async def login(
    request: Request,
    credentials: LoginRequest,
    auth_service: AuthServiceDep,
    context: RequestContextDep,
) -> ApiResponse[AuthData]:
    """
    Login and receive authentication tokens.

    Raises:
        401: Invalid credentials or inactive account
    """
    user, tokens = await auth_service.login(
        email=credentials.email,
        password=credentials.password,
        context=context,
    )

    return ApiResponse(
        message="Login successful",
        data=AuthData(
            user=UserResponse.model_validate(user),
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
    )


@router.post(
    "/refresh",
    response_model=ApiResponse[RefreshData],
    summary="Refresh access token",
    description="""
    Use a refresh token to obtain a new access token.

    The refresh token itself is not rotated; it stays valid until it is
    revoked or expires.

    **Rate Limit:** Configurable via RATE_LIMIT_TOKEN_REFRESH
    """,
)
@limiter.limit(settings.rate_limit_token_refresh)
async def refresh(
    request: Request,
    token_request: RefreshRequest,
    auth_service: AuthServiceDep,
) -> ApiResponse[RefreshData]:
    """
    Mint a new access token.

    Raises:
        401: Invalid, expired, or revoked refresh token
    """
    user, access_token = await auth_service.refresh_access_token(token_request.refresh_token)

    return ApiResponse(
        message="Token refreshed successfully",
        data=RefreshData(access_token=access_token, user=UserResponse.model_validate(user)),
    )


@router.post(
    "/logout",
    response_model=StatusResponse,
    summary="Logout user",
    description="""
    Revoke the given refresh token.

    The access token keeps working until it expires (15 minutes). Logout
    succeeds even without a token or with an unknown one.
    """,
)
async def logout(
    auth_service: AuthServiceDep,
    current_user: OptionalUser,
    context: RequestContextDep,
    logout_request: LogoutRequest | None = None,
) -> StatusResponse:
    """Logout user by revoking the refresh token, if one was sent."""
    await auth_service.logout(
        refresh_token=logout_request.refresh_token if logout_request else None,
        user=current_user,
        context=context,
    )
    return StatusResponse(message="Logout successful")


@router.get(
    "/profile",
    response_model=ApiResponse[UserData],
    summary="Get current user profile",
)
async def profile(
    current_user: CurrentUser,
    auth_service: AuthServiceDep,
) -> ApiResponse[UserData]:
    """
    Get the authenticated user's profile.

    Raises:
        401: Missing, expired or unusable token
        404: User no longer exists
    """
    user = await auth_service.get_profile(current_user.id)
    return ApiResponse(data=UserData(user=UserResponse.model_validate(user)))
