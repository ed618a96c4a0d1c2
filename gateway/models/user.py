"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Column, DateTime, String

from gateway.models.base import Base


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: name of a Role record. Not a foreign key; a user may reference a role
    that does not exist, which grants nothing.
    """

    __tablename__ = "users"

    id = Column(String(32), primary_key=True)
    # Case-sensitive as stored. The unique index backs the pre-insert existence check.
    email = Column(String(320), nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(64), nullable=False)
    date_register = Column(DateTime(timezone=True), nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
