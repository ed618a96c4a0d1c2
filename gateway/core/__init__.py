"""Core app configuration, database, security and errors."""

from gateway.core.config import Settings, get_settings
from gateway.core.database import create_session_factory

__all__ = ["Settings", "get_settings", "create_session_factory"]
