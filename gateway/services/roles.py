"""Role registry: CRUD over role -> permission-set records."""

import logging
from collections.abc import Iterable

from gateway.core.config import Settings
from gateway.core.errors import ConflictError, NotFoundError, ValidationError
from gateway.services.store import (
    ConcurrentUpdateError,
    CredentialStore,
    DuplicateKeyError,
    RoleRecord,
)

logger = logging.getLogger(__name__)

ROLE_NOT_FOUND_MESSAGE = "Role not found."


def _validate_permissions(permissions: object) -> list[str]:
    if not isinstance(permissions, list) or not all(
        isinstance(p, str) and p for p in permissions
    ):
        raise ValidationError("permissions must be a list of non-empty strings.")
    return permissions


class RoleRegistry:
    def __init__(self, store: CredentialStore, settings: Settings) -> None:
        self._store = store
        self._overwrite = settings.ROLE_CREATE_OVERWRITE
        self._retries = settings.ROLE_UPDATE_RETRIES

    async def list_roles(self) -> list[RoleRecord]:
        return await self._store.list_roles()

    async def create_role(
        self, name: str | None, permissions: Iterable[str] | None = None
    ) -> RoleRecord:
        """
        Create a role with an initial (possibly empty) permission set.

        An existing name is a ConflictError unless ROLE_CREATE_OVERWRITE is set, in
        which case the existing record is replaced.
        """
        if not name:
            raise ValidationError("Missing required field (role_name).")
        perms = _validate_permissions(list(permissions) if permissions is not None else [])
        try:
            role, created = await self._store.put_role(name, perms, overwrite=self._overwrite)
        except DuplicateKeyError as e:
            raise ConflictError("Role already exists.") from e
        logger.info(
            "Role created" if created else "Role overwritten",
            extra={"role": name, "permissions": sorted(role.permissions)},
        )
        return role

    async def replace_permissions(self, name: str, permissions: object) -> RoleRecord:
        perms = _validate_permissions(permissions)
        return await self._mutate(name, lambda _current: perms)

    async def delete_role(self, name: str) -> None:
        """Delete a role; unknown names are a no-op. Users keep referencing it."""
        deleted = await self._store.delete_role(name)
        logger.info("Role delete", extra={"role": name, "deleted": deleted})

    async def add_permission(self, name: str, permission: str | None) -> RoleRecord:
        """Union one permission into the role. Adding one it already has changes nothing."""
        if not permission:
            raise ValidationError("Missing required field (permission).")
        return await self._mutate(name, lambda current: current | {permission})

    async def remove_permission(self, name: str, permission: str | None) -> RoleRecord:
        """Remove one permission from the role. Removing one it lacks changes nothing."""
        if not permission:
            raise ValidationError("Missing required field (permission).")
        return await self._mutate(name, lambda current: current - {permission})

    async def _mutate(self, name, mutate) -> RoleRecord:
        try:
            role = await self._store.update_role_permissions(name, mutate, retries=self._retries)
        except ConcurrentUpdateError as e:
            raise ConflictError("Role was modified concurrently; try again.") from e
        if role is None:
            raise NotFoundError(ROLE_NOT_FOUND_MESSAGE)
        logger.info(
            "Role permissions updated",
            extra={"role": name, "permissions": sorted(role.permissions)},
        )
        return role
