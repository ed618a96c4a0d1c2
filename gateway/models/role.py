"""ORM model for roles and their permission sets."""

from sqlalchemy import JSON, Column, Integer, String

from gateway.models.base import Base


class Role(Base):
    """
    Named set of permissions. The name is the record key.

    permissions: JSON list of unique permission names, kept sorted.
    version: bumped on every update; a concurrent writer that read an older
    version fails with StaleDataError instead of overwriting.
    """

    __tablename__ = "roles"

    name = Column(String(64), primary_key=True)
    permissions = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
