"""
Core module for the Visigence API.

Exports the main configuration object; the other core modules
(database, security, logging, exceptions) are imported directly.
"""

from core.config import settings

__all__ = [
    # Config
    "settings",
]
