"""
Credential store: async access to the users and roles collections.

Each public method runs one short SQLAlchemy unit of work in the thread pool, so
request handlers suspend at store calls without holding any lock across the await.
Rows are mapped to immutable records on the way out; route and service code never
touches the ORM directly.

A single row write is atomic. Read-then-write sequences are protected two ways:
the unique index on users.email turns a lost registration race into
DuplicateKeyError, and the roles.version column turns a lost permission update
into a retry.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from gateway.core.errors import MalformedRecordError, StoreError
from gateway.models import Role, User

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DuplicateKeyError(StoreError):
    """Insert or update collided with an existing unique key."""


class ConcurrentUpdateError(StoreError):
    """A role kept changing underneath a read-modify-write until retries ran out."""


@dataclass(frozen=True)
class UserRecord:
    id: str
    email: str
    username: str
    password_hash: str
    role: str
    date_register: datetime
    last_login: datetime | None = None


@dataclass(frozen=True)
class RoleRecord:
    name: str
    permissions: frozenset[str]

    def grants(self, permission: str) -> bool:
        return permission in self.permissions


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops the offset on DateTime(timezone=True); stored values are always UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _row_to_user(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        email=row.email,
        username=row.username,
        password_hash=row.password_hash,
        role=row.role,
        date_register=_as_utc(row.date_register),
        last_login=_as_utc(row.last_login),
    )


def _row_to_role(row: Role) -> RoleRecord:
    """Validate the stored permission list; anything but a list of strings is malformed."""
    perms = row.permissions
    if perms is None:
        perms = []
    if not isinstance(perms, list) or not all(isinstance(p, str) for p in perms):
        raise MalformedRecordError(f"role {row.name!r} has malformed permissions")
    return RoleRecord(name=row.name, permissions=frozenset(perms))


def _permissions_to_column(permissions: Iterable[str]) -> list[str]:
    return sorted(set(permissions))


class CredentialStore:
    """Repository over the users and roles tables."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def _run(self, fn: Callable[[Session], T]) -> T:
        def work() -> T:
            with self._session_factory() as db:
                try:
                    return fn(db)
                except SQLAlchemyError:
                    db.rollback()
                    raise

        try:
            return await run_in_threadpool(work)
        except IntegrityError as e:
            raise DuplicateKeyError("unique constraint violated") from e
        except SQLAlchemyError as e:
            raise StoreError("database operation failed") from e

    # -- users --------------------------------------------------------------

    async def find_user_by_email(self, email: str) -> UserRecord | None:
        def fn(db: Session) -> UserRecord | None:
            row = db.scalars(select(User).where(User.email == email).limit(1)).first()
            return _row_to_user(row) if row else None

        return await self._run(fn)

    async def find_user_by_credentials(self, email: str, username: str) -> UserRecord | None:
        """Return the user whose email AND username both match exactly."""

        def fn(db: Session) -> UserRecord | None:
            row = db.scalars(
                select(User)
                .where(User.email == email, User.username == username)
                .limit(1)
            ).first()
            return _row_to_user(row) if row else None

        return await self._run(fn)

    async def get_user(self, user_id: str) -> UserRecord | None:
        def fn(db: Session) -> UserRecord | None:
            row = db.get(User, user_id)
            return _row_to_user(row) if row else None

        return await self._run(fn)

    async def list_users(self) -> list[UserRecord]:
        def fn(db: Session) -> list[UserRecord]:
            rows = db.scalars(select(User).order_by(User.date_register, User.id)).all()
            return [_row_to_user(r) for r in rows]

        return await self._run(fn)

    async def insert_user(
        self,
        email: str,
        username: str,
        password_hash: str,
        role: str,
        date_register: datetime,
    ) -> UserRecord:
        """Insert a new user with a generated id. Raises DuplicateKeyError on a taken email."""

        def fn(db: Session) -> UserRecord:
            row = User(
                id=uuid.uuid4().hex,
                email=email,
                username=username,
                password_hash=password_hash,
                role=role,
                date_register=date_register,
                last_login=None,
            )
            db.add(row)
            db.commit()
            return _row_to_user(row)

        return await self._run(fn)

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> UserRecord | None:
        """Apply fields to an existing user; None if the user does not exist."""

        def fn(db: Session) -> UserRecord | None:
            row = db.get(User, user_id)
            if row is None:
                return None
            for key, value in fields.items():
                setattr(row, key, value)
            db.commit()
            return _row_to_user(row)

        return await self._run(fn)

    async def touch_last_login(self, user_id: str, when: datetime) -> bool:
        return await self.update_user(user_id, {"last_login": when}) is not None

    async def delete_user(self, user_id: str) -> bool:
        def fn(db: Session) -> bool:
            row = db.get(User, user_id)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

        return await self._run(fn)

    # -- roles --------------------------------------------------------------

    async def list_roles(self) -> list[RoleRecord]:
        def fn(db: Session) -> list[RoleRecord]:
            rows = db.scalars(select(Role).order_by(Role.name)).all()
            return [_row_to_role(r) for r in rows]

        return await self._run(fn)

    async def get_role(self, name: str) -> RoleRecord | None:
        def fn(db: Session) -> RoleRecord | None:
            row = db.get(Role, name)
            return _row_to_role(row) if row else None

        return await self._run(fn)

    async def put_role(
        self, name: str, permissions: Iterable[str], overwrite: bool = False
    ) -> tuple[RoleRecord, bool]:
        """
        Create a role keyed by its name. Returns (record, created).

        With overwrite=False an existing name raises DuplicateKeyError; with
        overwrite=True its permission set is replaced.
        """
        perms = _permissions_to_column(permissions)

        def fn(db: Session) -> tuple[RoleRecord, bool]:
            row = db.get(Role, name)
            if row is not None:
                if not overwrite:
                    raise DuplicateKeyError(f"role {name!r} already exists")
                row.permissions = perms
                db.commit()
                return _row_to_role(row), False
            row = Role(name=name, permissions=perms)
            db.add(row)
            db.commit()
            return _row_to_role(row), True

        try:
            return await self._run(fn)
        except DuplicateKeyError:
            if not overwrite:
                raise
            # A concurrent create won the insert; the second pass finds its row and replaces it.
            logger.info("Role created concurrently; overwriting", extra={"role": name})
            return await self._run(fn)

    async def delete_role(self, name: str) -> bool:
        def fn(db: Session) -> bool:
            row = db.get(Role, name)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

        return await self._run(fn)

    async def update_role_permissions(
        self,
        name: str,
        mutate: Callable[[frozenset[str]], Iterable[str]],
        retries: int = 3,
    ) -> RoleRecord | None:
        """
        Read-modify-write a role's permission set under optimistic concurrency.

        mutate receives the current set and returns the new one. If another writer
        bumps the version between our read and write, the whole cycle is retried
        against fresh data. Returns None when the role does not exist.
        """

        def fn(db: Session) -> RoleRecord | None:
            for attempt in range(1, retries + 1):
                row = db.get(Role, name, populate_existing=True)
                if row is None:
                    return None
                current = _row_to_role(row).permissions
                row.permissions = _permissions_to_column(mutate(current))
                try:
                    db.commit()
                except StaleDataError:
                    db.rollback()
                    logger.warning(
                        "Concurrent update on role; retrying",
                        extra={"role": name, "attempt": attempt},
                    )
                    continue
                return _row_to_role(row)
            raise ConcurrentUpdateError(f"role {name!r} changed concurrently {retries} times")

        return await self._run(fn)
