"""Administrative user operations (list, update, delete)."""

import logging

from gateway.core.errors import ConflictError, NotFoundError, ValidationError
from gateway.services.store import CredentialStore, DuplicateKeyError, UserRecord

logger = logging.getLogger(__name__)


class UserAdminService:
    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    async def list_users(self) -> list[UserRecord]:
        return await self._store.list_users()

    async def delete_user(self, user_id: str) -> None:
        """Delete a user. Deleting an unknown id is a no-op."""
        deleted = await self._store.delete_user(user_id)
        logger.info("User delete", extra={"user_id": user_id, "deleted": deleted})

    async def update_user(
        self,
        user_id: str,
        email: str | None = None,
        username: str | None = None,
        role: str | None = None,
    ) -> UserRecord:
        """Apply the non-empty fields among email, username and role."""
        fields = {
            key: value
            for key, value in (("email", email), ("username", username), ("role", role))
            if value
        }
        if not fields:
            raise ValidationError("Nothing to update (email, username, role).")

        if "email" in fields:
            holder = await self._store.find_user_by_email(fields["email"])
            if holder is not None and holder.id != user_id:
                raise ConflictError("Email is already registered.")

        try:
            user = await self._store.update_user(user_id, fields)
        except DuplicateKeyError as e:
            raise ConflictError("Email is already registered.") from e
        if user is None:
            raise NotFoundError("User not found.")

        logger.info("User updated", extra={"user_id": user_id, "fields": sorted(fields)})
        return user
