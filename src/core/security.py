"""
Security utilities for authentication and authorization.

This module provides:
- Password hashing with Argon2id
- Password strength validation (validity plus an advisory score)
- TokenService: signing and verification of access and refresh tokens
- Refresh token hashing with SHA-256 for storage
"""

import hashlib
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any, TypedDict

from argon2 import PasswordHasher
from argon2.exceptions import (
    InvalidHashError,
    VerificationError,
    VerifyMismatchError,
)
from jose import JWTError, jwt

from core.config import Settings, settings

logger = logging.getLogger(__name__)


# =============================================================================
# Password Hashing with Argon2id
# =============================================================================

pwd_hasher = PasswordHasher(
    time_cost=settings.argon2_time_cost,
    memory_cost=settings.argon2_memory_cost,
    parallelism=settings.argon2_parallelism,
    hash_len=32,
    salt_len=16,
)


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: Plain text password to hash

    Returns:
        Argon2id hash string (includes algorithm, parameters, salt, and hash)

    Example:
        >>> hashed = hash_password("my_secure_password")
        >>> # Returns: $argon2id$v=19$m=65536,t=2,p=4$...
    """
    return pwd_hasher.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Verify a password against an Argon2id hash.

    Args:
        password: Plain text password to verify
        hashed_password: Argon2id hash to verify against

    Returns:
        True if password matches hash, False otherwise
    """
    try:
        pwd_hasher.verify(hashed_password, password)
        return True
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


# =============================================================================
# Password Strength
# =============================================================================

PASSWORD_MIN_LENGTH = 8
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


class PasswordStrength(TypedDict):
    """Result of validate_password_strength."""

    valid: bool
    score: int
    feedback: dict[str, bool]
    reasons: list[str]


def validate_password_strength(password: str) -> PasswordStrength:
    """
    Check a password against the account password policy.

    A password is valid when it has at least 8 characters and contains a
    lowercase letter, an uppercase letter and a digit. A special character
    is not required; it only raises the score. The score (0-4) counts
    lowercase, uppercase, digit and special character.

    Args:
        password: Password to validate

    Returns:
        PasswordStrength with ``valid``, ``score``, per-rule ``feedback`` and
        human-readable ``reasons`` for every failed mandatory rule

    Example:
        >>> validate_password_strength("Password1")["valid"]
        True
        >>> validate_password_strength("Password1!")["score"]
        4
    """
    feedback = {
        "min_length": len(password) >= PASSWORD_MIN_LENGTH,
        "has_lowercase": re.search(r"[a-z]", password) is not None,
        "has_uppercase": re.search(r"[A-Z]", password) is not None,
        "has_numbers": re.search(r"\d", password) is not None,
        "has_special_char": SPECIAL_CHARACTERS.search(password) is not None,
    }

    reasons = []
    if not feedback["min_length"]:
        reasons.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not feedback["has_lowercase"]:
        reasons.append("Password must contain at least one lowercase letter")
    if not feedback["has_uppercase"]:
        reasons.append("Password must contain at least one uppercase letter")
    if not feedback["has_numbers"]:
        reasons.append("Password must contain at least one digit")

    score = sum(
        feedback[key]
        for key in ("has_lowercase", "has_uppercase", "has_numbers", "has_special_char")
    )

    return PasswordStrength(
        valid=not reasons,
        score=score,
        feedback=feedback,
        reasons=reasons,
    )


# =============================================================================
# Token Management
# =============================================================================
# Access tokens: short-lived, carry only the principal id, never persisted.
# Refresh tokens: separate secret, persisted (hashed) with their own expiry
# and revocation flag. Both checks must pass before a refresh is honored.
# =============================================================================

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    """Access and refresh token minted together."""

    access_token: str
    refresh_token: str


class TokenService:
    """
    Issues and verifies signed tokens.

    The service is bound to an explicit Settings object; it never consults
    the process-wide settings, so two services with different secrets can
    coexist (tests rely on this).

    Example:
        >>> service = TokenService(settings)
        >>> pair = service.issue_token_pair(user.id)
        >>> claims = service.decode_access_token(pair.access_token)
        >>> claims["sub"] == str(user.id)
        True
    """

    def __init__(self, config: Settings):
        self.config = config

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.config.access_token_expire_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.config.refresh_token_expire_days)

    def _encode(
        self,
        principal_id: uuid.UUID | str,
        token_type: str,
        secret: str,
        expires_delta: timedelta,
    ) -> str:
        now = datetime.now(UTC)
        claims: dict[str, Any] = {
            "sub": str(principal_id),
            "type": token_type,
            "iss": self.config.jwt_issuer,
            "aud": self.config.jwt_audience,
            "iat": now,
            "exp": now + expires_delta,
            "jti": str(uuid.uuid4()),  # two tokens minted in the same second still differ
        }
        return jwt.encode(claims, secret, algorithm=self.config.jwt_algorithm)

    def _decode(self, token: str, secret: str, expected_type: str) -> dict[str, Any]:
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.config.jwt_algorithm],
                audience=self.config.jwt_audience,
                issuer=self.config.jwt_issuer,
            )
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise

        if not verify_token_type(payload, expected_type):
            raise JWTError(f"Expected a {expected_type} token")
        if not payload.get("sub"):
            raise JWTError("Token has no subject")
        return payload

    def create_access_token(
        self,
        principal_id: uuid.UUID | str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a signed access token for a principal.

        Args:
            principal_id: Id of the principal, stored in the ``sub`` claim
            expires_delta: Optional lifetime override (default 15 minutes)

        Returns:
            Encoded token string
        """
        return self._encode(
            principal_id,
            TOKEN_TYPE_ACCESS,
            self.config.access_token_secret,
            expires_delta or self.access_token_ttl,
        )

    def create_refresh_token(
        self,
        principal_id: uuid.UUID | str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a signed refresh token for a principal.

        Args:
            principal_id: Id of the principal, stored in the ``sub`` claim
            expires_delta: Optional lifetime override (default 7 days)

        Returns:
            Encoded token string
        """
        return self._encode(
            principal_id,
            TOKEN_TYPE_REFRESH,
            self.config.refresh_token_secret,
            expires_delta or self.refresh_token_ttl,
        )

    def issue_token_pair(self, principal_id: uuid.UUID | str) -> TokenPair:
        """Mint an access token and a refresh token for the same principal."""
        return TokenPair(
            access_token=self.create_access_token(principal_id),
            refresh_token=self.create_refresh_token(principal_id),
        )

    def decode_access_token(self, token: str) -> dict[str, Any]:
        """
        Verify an access token and return its claims.

        Raises:
            jose.ExpiredSignatureError: Signature is valid but the token expired
            jose.JWTError: Any other signature, claim or type failure
        """
        return self._decode(token, self.config.access_token_secret, TOKEN_TYPE_ACCESS)

    def decode_refresh_token(self, token: str) -> dict[str, Any]:
        """
        Verify a refresh token signature and return its claims.

        This covers only the signature side; the persisted record must be
        checked separately for revocation and expiry.

        Raises:
            jose.ExpiredSignatureError: Signature is valid but the token expired
            jose.JWTError: Any other signature, claim or type failure
        """
        return self._decode(token, self.config.refresh_token_secret, TOKEN_TYPE_REFRESH)

    def refresh_token_expires_at(self, now: datetime | None = None) -> datetime:
        """Absolute expiry stored alongside a persisted refresh token."""
        return (now or datetime.now(UTC)) + self.refresh_token_ttl


@lru_cache
def get_token_service() -> TokenService:
    """Application-wide TokenService bound to the loaded settings."""
    return TokenService(settings)


def verify_token_type(token_data: dict[str, Any], expected_type: str) -> bool:
    """
    Verify that a token is of the expected type.

    Args:
        token_data: Decoded token claims
        expected_type: Expected token type ("access" or "refresh")

    Returns:
        True if token type matches, False otherwise
    """
    return token_data.get("type") == expected_type


# =============================================================================
# Refresh Token Hashing
# =============================================================================
# Refresh tokens are stored as SHA-256 hashes; a leaked table does not leak
# usable tokens.
# =============================================================================


def hash_refresh_token(token: str) -> str:
    """
    Hash a refresh token using SHA-256.

    Args:
        token: Refresh token string

    Returns:
        SHA-256 hash of the token (hex string)
    """
    return hashlib.sha256(token.encode()).hexdigest()
