"""
Database models for the Visigence API.

This module exports all SQLAlchemy models and the declarative base.
Import models from this module to ensure proper initialization.
"""

from models.audit_log import AuditLog
from models.base import Base
from models.category import Category
from models.enums import (
    ADMIN_ROLES,
    ELEVATED_ROLES,
    AuditAction,
    MessageStatus,
    UserRole,
    UserStatus,
)
from models.message import Message, MessageTag
from models.mixins import SoftDeleteMixin, TimestampMixin
from models.refresh_token import RefreshToken
from models.tag import Tag
from models.user import User

__all__ = [
    # Base
    "Base",
    # Mixins
    "TimestampMixin",
    "SoftDeleteMixin",
    # Enums
    "UserRole",
    "UserStatus",
    "MessageStatus",
    "AuditAction",
    "ADMIN_ROLES",
    "ELEVATED_ROLES",
    # User models
    "User",
    # Token models
    "RefreshToken",
    # Audit models
    "AuditLog",
    # Content models
    "Message",
    "MessageTag",
    "Category",
    "Tag",
]
