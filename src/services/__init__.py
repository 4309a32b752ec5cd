"""
Service layer for business logic.

This package provides service classes that implement business logic,
coordinate between repositories, and handle transaction management.
"""

from services.audit_service import AuditService, RequestContext
from services.auth_service import AuthService
from services.message_service import MessageService
from services.user_service import UserService

__all__ = [
    "AuditService",
    "AuthService",
    "MessageService",
    "RequestContext",
    "UserService",
]
