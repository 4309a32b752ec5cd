"""
Closed enumerations shared by models, schemas and services.

This module defines:
- UserRole: account roles, lowest to highest privilege
- UserStatus: account lifecycle states
- MessageStatus: content lifecycle states
- AuditAction: kinds of actions written to the audit trail

Values are the wire and storage representation. Anything outside these
sets is rejected at the HTTP boundary by pydantic.
"""

import enum


class UserRole(str, enum.Enum):
    """
    Account roles.

    Attributes:
        user: Regular account, may only manage itself and its own content
        moderator: May list users and moderate any message
        admin: Full user administration except deleting other admins
        super_admin: Admin that may also delete admins
    """

    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class UserStatus(str, enum.Enum):
    """Account lifecycle states. Only ACTIVE accounts may authenticate."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"
    PENDING_VERIFICATION = "pending_verification"
    DELETED = "deleted"


class MessageStatus(str, enum.Enum):
    """
    Content lifecycle states.

    PUBLISHED is the only publicly visible state; every other state is
    visible to the author, moderators and admins only.
    """

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    FLAGGED = "flagged"
    DELETED = "deleted"


class AuditAction(str, enum.Enum):
    """Kinds of actions recorded in the audit trail."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFY = "email_verify"
    ROLE_CHANGE = "role_change"


# Role groups used by authorization guards
ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})
ELEVATED_ROLES = frozenset({UserRole.MODERATOR, UserRole.ADMIN, UserRole.SUPER_ADMIN})
