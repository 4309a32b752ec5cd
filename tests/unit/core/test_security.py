"""
Unit tests for security utilities (password hashing, strength, tokens).

No database or external dependencies.
"""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from jose import ExpiredSignatureError, JWTError, jwt

from core import security
from core.config import Settings


@pytest.fixture
def token_settings() -> Settings:
    """Settings with fixed secrets, independent of the environment."""
    return Settings(
        access_token_secret="a" * 40,
        refresh_token_secret="b" * 40,
        database_url="postgresql+asyncpg://u:p@localhost:5432/db",
        redis_url="redis://localhost:6379/0",
    )


@pytest.fixture
def token_service(token_settings: Settings) -> security.TokenService:
    return security.TokenService(token_settings)


class TestPasswordHashing:
    """Test password hashing with Argon2id."""

    def test_hash_password_returns_argon2id_hash(self):
        """Hash is an Argon2id string, never the plaintext."""
        hashed = security.hash_password("TestPassword123")

        assert hashed.startswith("$argon2id$")
        assert hashed != "TestPassword123"

    def test_hash_password_different_for_same_password(self):
        """Hashing the same password twice produces different hashes (salt)."""
        assert security.hash_password("TestPassword123") != security.hash_password(
            "TestPassword123"
        )

    def test_verify_password_correct_password(self):
        hashed = security.hash_password("TestPassword123")

        assert security.verify_password("TestPassword123", hashed) is True

    def test_verify_password_incorrect_password(self):
        hashed = security.hash_password("TestPassword123")

        assert security.verify_password("WrongPassword123", hashed) is False

    def test_verify_password_invalid_hash(self):
        """Malformed hashes verify as False instead of raising."""
        assert security.verify_password("password", "not_a_valid_argon2_hash") is False


class TestPasswordStrengthValidation:
    """Test password strength validation."""

    def test_valid_password_without_special_character(self):
        """A special character is not required for validity."""
        result = security.validate_password_strength("Password1")

        assert result["valid"] is True
        assert result["reasons"] == []
        assert result["score"] == 3

    def test_special_character_raises_score(self):
        result = security.validate_password_strength("Password1!")

        assert result["valid"] is True
        assert result["score"] == 4
        assert result["feedback"]["has_special_char"] is True

    @pytest.mark.parametrize(
        ("password", "reason"),
        [
            ("Pass1", "at least 8 characters"),
            ("PASSWORD1", "lowercase"),
            ("password1", "uppercase"),
            ("Passwordx", "digit"),
        ],
    )
    def test_each_mandatory_rule_is_reported(self, password: str, reason: str):
        result = security.validate_password_strength(password)

        assert result["valid"] is False
        assert any(reason in message for message in result["reasons"])

    def test_reports_every_failed_rule(self):
        result = security.validate_password_strength("abc")

        assert result["valid"] is False
        assert len(result["reasons"]) == 3


class TestTokenService:
    """Test token minting and verification."""

    def test_access_token_round_trip(self, token_service: security.TokenService):
        user_id = uuid.uuid4()
        token = token_service.create_access_token(user_id)

        claims = token_service.decode_access_token(token)

        assert claims["sub"] == str(user_id)
        assert claims["type"] == security.TOKEN_TYPE_ACCESS
        assert claims["iss"] == "visigence-api"
        assert claims["aud"] == "visigence-client"

    def test_issue_token_pair_mints_distinct_tokens(self, token_service: security.TokenService):
        pair = token_service.issue_token_pair(uuid.uuid4())

        assert pair.access_token != pair.refresh_token

    def test_access_token_lifetime_defaults_to_15_minutes(
        self, token_service: security.TokenService
    ):
        token = token_service.create_access_token(uuid.uuid4())
        claims = jwt.get_unverified_claims(token)

        assert claims["exp"] - claims["iat"] == 15 * 60

    def test_expired_access_token_raises_expired_signature(
        self, token_service: security.TokenService
    ):
        """Expired tokens are distinguishable from otherwise invalid ones."""
        token = token_service.create_access_token(
            uuid.uuid4(), expires_delta=timedelta(seconds=-1)
        )

        with pytest.raises(ExpiredSignatureError):
            token_service.decode_access_token(token)

    def test_tampered_token_raises_jwt_error(self, token_service: security.TokenService):
        token = token_service.create_access_token(uuid.uuid4())

        with pytest.raises(JWTError) as exc_info:
            token_service.decode_access_token(token[:-2] + "xx")

        assert not isinstance(exc_info.value, ExpiredSignatureError)

    def test_refresh_token_rejected_as_access_token(self, token_service: security.TokenService):
        """Refresh tokens are signed with a different secret."""
        refresh = token_service.create_refresh_token(uuid.uuid4())

        with pytest.raises(JWTError):
            token_service.decode_access_token(refresh)

    def test_access_token_rejected_as_refresh_token(self, token_service: security.TokenService):
        access = token_service.create_access_token(uuid.uuid4())

        with pytest.raises(JWTError):
            token_service.decode_refresh_token(access)

    def test_token_signed_for_other_audience_rejected(
        self,
        token_service: security.TokenService,
        token_settings: Settings,
    ):
        now = datetime.now(UTC)
        forged = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "type": security.TOKEN_TYPE_ACCESS,
                "iss": token_settings.jwt_issuer,
                "aud": "someone-else",
                "iat": now,
                "exp": now + timedelta(minutes=5),
            },
            token_settings.access_token_secret,
            algorithm="HS256",
        )

        with pytest.raises(JWTError):
            token_service.decode_access_token(forged)

    def test_refresh_token_expires_at_is_seven_days_out(
        self, token_service: security.TokenService
    ):
        now = datetime(2026, 1, 1, tzinfo=UTC)

        assert token_service.refresh_token_expires_at(now) == now + timedelta(days=7)

    def test_services_with_different_secrets_do_not_trust_each_other(
        self, token_service: security.TokenService, token_settings: Settings
    ):
        other = security.TokenService(
            token_settings.model_copy(update={"access_token_secret": "c" * 40})
        )
        token = other.create_access_token(uuid.uuid4())

        with pytest.raises(JWTError):
            token_service.decode_access_token(token)


class TestRefreshTokenHashing:
    def test_hash_is_deterministic_sha256_hex(self):
        digest = security.hash_refresh_token("some-token")

        assert digest == security.hash_refresh_token("some-token")
        assert len(digest) == 64

    def test_different_tokens_hash_differently(self):
        assert security.hash_refresh_token("a") != security.hash_refresh_token("b")


class TestSettingsValidation:
    def test_identical_token_secrets_rejected(self):
        with pytest.raises(ValueError):
            Settings(
                access_token_secret="s" * 40,
                refresh_token_secret="s" * 40,
                database_url="postgresql+asyncpg://u:p@localhost:5432/db",
                redis_url="redis://localhost:6379/0",
            )
