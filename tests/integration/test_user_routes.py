"""
Integration tests for user management routes.

Tests cover:
- Listing with role guard, filters, sort whitelisting and pagination clamping
- Reading users (self, elevated, others)
- Whitelisted updates and role changes
- Soft deletion rules
- Password changes and token revocation
- Statistics
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from models.audit_log import AuditLog
from models.enums import AuditAction, UserRole, UserStatus
from models.refresh_token import RefreshToken
from models.user import User

DEFAULT_PASSWORD = "TestPass123!"


async def load_user(session_factory, user_id: uuid.UUID) -> User | None:
    """Read a user row directly, including soft-deleted ones."""
    async with session_factory() as session:
        result = await session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()


async def load_audit(session_factory, action: AuditAction) -> list[AuditLog]:
    async with session_factory() as session:
        result = await session.execute(select(AuditLog).where(AuditLog.action == action))
        return list(result.scalars().all())


class TestListUsers:
    """Test GET /api/users."""

    @pytest.mark.asyncio
    async def test_moderator_can_list(
        self, async_client: AsyncClient, moderator_token, test_user, other_user
    ):
        response = await async_client.get("/api/users", headers=moderator_token)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pagination"]["total"] == 3
        usernames = {user["username"] for user in data["users"]}
        assert {"testuser", "otheruser", "moderatoruser"} <= usernames

    @pytest.mark.asyncio
    async def test_regular_user_cannot_list(self, async_client: AsyncClient, user_token):
        response = await async_client.get("/api/users", headers=user_token)

        assert response.status_code == 403
        assert response.json()["error"] == "INSUFFICIENT_PERMISSIONS"

    @pytest.mark.asyncio
    async def test_anonymous_cannot_list(self, async_client: AsyncClient):
        response = await async_client.get("/api/users")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_sort_by_password_hash_falls_back_to_created_at(
        self, async_client: AsyncClient, admin_token, test_user, other_user
    ):
        response = await async_client.get(
            "/api/users", params={"sort": "password_hash", "order": "asc"}, headers=admin_token
        )

        assert response.status_code == 200
        users = response.json()["data"]["users"]
        created = [user["createdAt"] for user in users]
        assert created == sorted(created)
        assert all("passwordHash" not in user for user in users)

    @pytest.mark.asyncio
    async def test_sort_by_username(
        self, async_client: AsyncClient, admin_token, test_user, other_user
    ):
        response = await async_client.get(
            "/api/users", params={"sort": "username", "order": "asc"}, headers=admin_token
        )

        usernames = [user["username"] for user in response.json()["data"]["users"]]
        assert usernames == sorted(usernames)

    @pytest.mark.asyncio
    async def test_limit_is_clamped(self, async_client: AsyncClient, admin_token):
        response = await async_client.get(
            "/api/users", params={"limit": "99999", "page": "0"}, headers=admin_token
        )

        assert response.status_code == 200
        pagination = response.json()["data"]["pagination"]
        assert pagination["limit"] == 100
        assert pagination["page"] == 1

    @pytest.mark.asyncio
    async def test_non_numeric_pagination_uses_defaults(
        self, async_client: AsyncClient, admin_token
    ):
        response = await async_client.get(
            "/api/users", params={"limit": "abc", "page": "xyz"}, headers=admin_token
        )

        assert response.status_code == 200
        pagination = response.json()["data"]["pagination"]
        assert pagination["limit"] == 10
        assert pagination["page"] == 1

    @pytest.mark.asyncio
    async def test_pagination_pages(self, async_client: AsyncClient, admin_token, create_user):
        for index in range(4):
            await create_user(f"pageuser{index}")

        response = await async_client.get(
            "/api/users", params={"limit": "2", "page": "2"}, headers=admin_token
        )

        data = response.json()["data"]
        assert len(data["users"]) == 2
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3}

    @pytest.mark.asyncio
    async def test_search_filter(
        self, async_client: AsyncClient, admin_token, test_user, other_user
    ):
        response = await async_client.get(
            "/api/users", params={"search": "other"}, headers=admin_token
        )

        usernames = [user["username"] for user in response.json()["data"]["users"]]
        assert usernames == ["otheruser"]

    @pytest.mark.asyncio
    async def test_role_and_status_filters(
        self, async_client: AsyncClient, admin_token, moderator_user, inactive_user
    ):
        by_role = await async_client.get(
            "/api/users", params={"role": "moderator"}, headers=admin_token
        )
        by_status = await async_client.get(
            "/api/users", params={"status": "inactive"}, headers=admin_token
        )

        assert [u["username"] for u in by_role.json()["data"]["users"]] == ["moderatoruser"]
        assert [u["username"] for u in by_status.json()["data"]["users"]] == ["inactiveuser"]

    @pytest.mark.asyncio
    async def test_unknown_role_filter_is_rejected(self, async_client: AsyncClient, admin_token):
        response = await async_client.get(
            "/api/users", params={"role": "overlord"}, headers=admin_token
        )

        assert response.status_code == 400


class TestGetUser:
    """Test GET /api/users/{user_id}."""

    @pytest.mark.asyncio
    async def test_user_can_view_self(self, async_client: AsyncClient, test_user, user_token):
        response = await async_client.get(f"/api/users/{test_user.id}", headers=user_token)

        assert response.status_code == 200
        assert response.json()["data"]["user"]["email"] == test_user.email

    @pytest.mark.asyncio
    async def test_user_cannot_view_others(
        self, async_client: AsyncClient, other_user, user_token
    ):
        response = await async_client.get(f"/api/users/{other_user.id}", headers=user_token)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_moderator_can_view_others(
        self, async_client: AsyncClient, test_user, moderator_token
    ):
        response = await async_client.get(f"/api/users/{test_user.id}", headers=moderator_token)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_user(self, async_client: AsyncClient, admin_token):
        response = await async_client.get(f"/api/users/{uuid.uuid4()}", headers=admin_token)

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_malformed_id(self, async_client: AsyncClient, admin_token):
        response = await async_client.get("/api/users/not-a-uuid", headers=admin_token)

        assert response.status_code == 400


class TestUpdateUser:
    """Test PUT /api/users/{user_id}."""

    @pytest.mark.asyncio
    async def test_self_update_ignores_privileged_and_unknown_fields(
        self, async_client: AsyncClient, session_factory, test_user, user_token
    ):
        response = await async_client.put(
            f"/api/users/{test_user.id}",
            json={
                "firstName": "Renamed",
                "bio": "Hello there",
                "role": "admin",
                "status": "active",
                "passwordHash": "x",
                "email": "hijack@example.com",
            },
            headers=user_token,
        )

        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["firstName"] == "Renamed"
        assert user["bio"] == "Hello there"
        assert user["role"] == "user"
        assert user["email"] == test_user.email

        stored = await load_user(session_factory, test_user.id)
        assert stored.role == UserRole.USER
        assert stored.password_hash == test_user.password_hash

    @pytest.mark.asyncio
    async def test_only_privileged_fields_is_empty_update(
        self, async_client: AsyncClient, test_user, user_token
    ):
        response = await async_client.put(
            f"/api/users/{test_user.id}", json={"role": "admin"}, headers=user_token
        )

        assert response.status_code == 400
        assert response.json()["message"] == "No valid fields to update"

    @pytest.mark.asyncio
    async def test_user_cannot_update_others(
        self, async_client: AsyncClient, session_factory, other_user, user_token
    ):
        response = await async_client.put(
            f"/api/users/{other_user.id}", json={"firstName": "Hacked"}, headers=user_token
        )

        assert response.status_code == 403
        stored = await load_user(session_factory, other_user.id)
        assert stored.first_name == "Test"

    @pytest.mark.asyncio
    async def test_admin_role_change_is_audited(
        self, async_client: AsyncClient, session_factory, admin_user, test_user, admin_token
    ):
        response = await async_client.put(
            f"/api/users/{test_user.id}", json={"role": "moderator"}, headers=admin_token
        )

        assert response.status_code == 200
        assert response.json()["data"]["user"]["role"] == "moderator"

        entries = await load_audit(session_factory, AuditAction.ROLE_CHANGE)
        assert len(entries) == 1
        assert entries[0].user_id == admin_user.id
        assert entries[0].resource_id == str(test_user.id)
        assert entries[0].old_values == {"role": "user"}
        assert entries[0].new_values == {"role": "moderator"}

    @pytest.mark.asyncio
    async def test_admin_can_suspend(
        self, async_client: AsyncClient, test_user, admin_token
    ):
        response = await async_client.put(
            f"/api/users/{test_user.id}", json={"status": "suspended"}, headers=admin_token
        )

        assert response.status_code == 200
        assert response.json()["data"]["user"]["status"] == "suspended"

    @pytest.mark.asyncio
    async def test_admin_cannot_grant_super_admin(
        self, async_client: AsyncClient, test_user, admin_token
    ):
        response = await async_client.put(
            f"/api/users/{test_user.id}", json={"role": "super_admin"}, headers=admin_token
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_username_taken(
        self, async_client: AsyncClient, test_user, other_user, user_token
    ):
        response = await async_client.put(
            f"/api/users/{test_user.id}",
            json={"username": other_user.username},
            headers=user_token,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Username already taken"

    @pytest.mark.asyncio
    async def test_invalid_avatar_url(self, async_client: AsyncClient, test_user, user_token):
        response = await async_client.put(
            f"/api/users/{test_user.id}",
            json={"avatarUrl": "javascript:alert(1)"},
            headers=user_token,
        )

        assert response.status_code == 400


class TestDeleteUser:
    """Test DELETE /api/users/{user_id}."""

    @pytest.mark.asyncio
    async def test_admin_cannot_delete_self(
        self, async_client: AsyncClient, session_factory, admin_user, admin_token
    ):
        response = await async_client.delete(f"/api/users/{admin_user.id}", headers=admin_token)

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot delete your own account"

        stored = await load_user(session_factory, admin_user.id)
        assert stored.deleted_at is None
        assert stored.status == UserStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_admin_soft_deletes_user(
        self, async_client: AsyncClient, session_factory, test_user, admin_token
    ):
        login = await async_client.post(
            "/api/auth/login", json={"email": test_user.email, "password": DEFAULT_PASSWORD}
        )
        refresh_token = login.json()["data"]["refreshToken"]

        response = await async_client.delete(f"/api/users/{test_user.id}", headers=admin_token)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "User deleted successfully"}

        stored = await load_user(session_factory, test_user.id)
        assert stored.deleted_at is not None
        assert stored.status == UserStatus.DELETED

        async with session_factory() as session:
            tokens = (
                await session.execute(
                    select(RefreshToken).where(RefreshToken.user_id == test_user.id)
                )
            ).scalars().all()
        assert all(token.is_revoked for token in tokens)

        follow_up = await async_client.get(f"/api/users/{test_user.id}", headers=admin_token)
        assert follow_up.status_code == 404

        refresh = await async_client.post(
            "/api/auth/refresh", json={"refreshToken": refresh_token}
        )
        assert refresh.status_code == 401

    @pytest.mark.asyncio
    async def test_deleted_users_email_can_register_again(
        self, async_client: AsyncClient, test_user, admin_token
    ):
        await async_client.delete(f"/api/users/{test_user.id}", headers=admin_token)

        response = await async_client.post(
            "/api/auth/register",
            json={
                "email": test_user.email,
                "password": "SecurePass123",
                "firstName": "Again",
                "lastName": "User",
                "username": test_user.username,
            },
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_admin_cannot_delete_admin(
        self, async_client: AsyncClient, create_user, admin_token
    ):
        other_admin = await create_user("otheradmin", role=UserRole.ADMIN)

        response = await async_client.delete(f"/api/users/{other_admin.id}", headers=admin_token)

        assert response.status_code == 403
        assert response.json()["message"] == "Cannot delete admin users"

    @pytest.mark.asyncio
    async def test_super_admin_can_delete_admin(
        self, async_client: AsyncClient, admin_user, super_admin_token
    ):
        response = await async_client.delete(
            f"/api/users/{admin_user.id}", headers=super_admin_token
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_regular_user_cannot_delete(
        self, async_client: AsyncClient, session_factory, other_user, user_token
    ):
        response = await async_client.delete(f"/api/users/{other_user.id}", headers=user_token)

        assert response.status_code == 403
        stored = await load_user(session_factory, other_user.id)
        assert stored.deleted_at is None

    @pytest.mark.asyncio
    async def test_delete_missing_user(self, async_client: AsyncClient, admin_token):
        response = await async_client.delete(f"/api/users/{uuid.uuid4()}", headers=admin_token)

        assert response.status_code == 404


class TestChangePassword:
    """Test PUT /api/users/{user_id}/password."""

    @pytest.mark.asyncio
    async def test_change_own_password_revokes_sessions(
        self, async_client: AsyncClient, session_factory, test_user
    ):
        login = await async_client.post(
            "/api/auth/login", json={"email": test_user.email, "password": DEFAULT_PASSWORD}
        )
        tokens = login.json()["data"]
        headers = {"Authorization": f"Bearer {tokens['accessToken']}"}

        response = await async_client.put(
            f"/api/users/{test_user.id}/password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "BrandNew456"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"

        refresh = await async_client.post(
            "/api/auth/refresh", json={"refreshToken": tokens["refreshToken"]}
        )
        assert refresh.status_code == 401

        old_login = await async_client.post(
            "/api/auth/login", json={"email": test_user.email, "password": DEFAULT_PASSWORD}
        )
        new_login = await async_client.post(
            "/api/auth/login", json={"email": test_user.email, "password": "BrandNew456"}
        )
        assert old_login.status_code == 401
        assert new_login.status_code == 200

        entries = await load_audit(session_factory, AuditAction.PASSWORD_RESET)
        assert len(entries) == 1

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, async_client: AsyncClient, test_user, user_token):
        response = await async_client.put(
            f"/api/users/{test_user.id}/password",
            json={"currentPassword": "WrongPass999", "newPassword": "BrandNew456"},
            headers=user_token,
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "currentPassword"

    @pytest.mark.asyncio
    async def test_weak_new_password(self, async_client: AsyncClient, test_user, user_token):
        response = await async_client.put(
            f"/api/users/{test_user.id}/password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "short"},
            headers=user_token,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_admin_resets_without_current_password(
        self, async_client: AsyncClient, test_user, admin_token
    ):
        response = await async_client.put(
            f"/api/users/{test_user.id}/password",
            json={"newPassword": "BrandNew456"},
            headers=admin_token,
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_user_cannot_change_others_password(
        self, async_client: AsyncClient, other_user, user_token
    ):
        response = await async_client.put(
            f"/api/users/{other_user.id}/password",
            json={"currentPassword": DEFAULT_PASSWORD, "newPassword": "BrandNew456"},
            headers=user_token,
        )

        assert response.status_code == 403


class TestUserStats:
    """Test GET /api/users/stats."""

    @pytest.mark.asyncio
    async def test_admin_gets_stats(
        self,
        async_client: AsyncClient,
        admin_token,
        test_user,
        moderator_user,
        inactive_user,
    ):
        response = await async_client.get("/api/users/stats", headers=admin_token)

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["totalUsers"] == 4
        assert stats["activeUsers"] == 3
        assert stats["inactiveUsers"] == 1
        assert stats["adminUsers"] == 1
        assert stats["moderatorUsers"] == 1
        assert stats["regularUsers"] == 2
        assert stats["newUsers30d"] == 4

    @pytest.mark.asyncio
    async def test_moderator_cannot_get_stats(self, async_client: AsyncClient, moderator_token):
        response = await async_client.get("/api/users/stats", headers=moderator_token)

        assert response.status_code == 403
