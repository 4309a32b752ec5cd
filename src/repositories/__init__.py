"""
Database repositories for the Visigence API.

This module exports all repository classes for database operations.
"""

from repositories.audit_repository import AuditLogRepository
from repositories.base import BaseRepository
from repositories.message_repository import MessageRepository
from repositories.refresh_token_repository import RefreshTokenRepository
from repositories.user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "RefreshTokenRepository",
    "AuditLogRepository",
    "MessageRepository",
]
