"""
API routes for the Visigence API.

This package contains all API endpoint definitions organized by feature.
"""

from api.routes import audit_logs, auth, health, messages, root, users

__all__ = ["audit_logs", "auth", "health", "messages", "root", "users"]
