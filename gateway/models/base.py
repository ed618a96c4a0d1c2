"""SQLAlchemy declarative Base shared by the users and roles tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
