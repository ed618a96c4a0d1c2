"""SQLAlchemy ORM models."""

from gateway.models.base import Base
from gateway.models.role import Role
from gateway.models.user import User

__all__ = ["Base", "Role", "User"]
