"""Registration and login: credential checks, user creation and token issuance."""

import logging
from datetime import UTC, datetime

from fastapi.concurrency import run_in_threadpool

from gateway.core.config import Settings
from gateway.core.errors import ConflictError, InvalidCredentialsError, ValidationError
from gateway.core.security import (
    DUMMY_PASSWORD,
    TokenService,
    hash_password,
    verify_password,
)
from gateway.services.store import CredentialStore, DuplicateKeyError, UserRecord

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "Missing required fields (email, username, password)."
EMAIL_TAKEN_MESSAGE = "Email is already registered."
INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."


def _require_fields(email: str | None, username: str | None, password: str | None) -> None:
    if not email or not username or not password:
        raise ValidationError(MISSING_FIELDS_MESSAGE)


class AuthenticationService:
    def __init__(self, store: CredentialStore, tokens: TokenService, settings: Settings) -> None:
        self._store = store
        self._tokens = tokens
        self._default_role = settings.DEFAULT_ROLE
        self._bcrypt_rounds = settings.BCRYPT_ROUNDS
        # Checked against when no user matches a login so both paths pay the same bcrypt cost.
        self._dummy_hash = hash_password(DUMMY_PASSWORD, self._bcrypt_rounds)

    async def register(
        self,
        email: str | None,
        username: str | None,
        password: str | None,
        role: str | None = None,
    ) -> UserRecord:
        """
        Create a user. Does not issue a token.

        Raises ValidationError when a required field is missing and ConflictError when
        the email is already registered (including a concurrent registration that won
        the insert).
        """
        _require_fields(email, username, password)

        if await self._store.find_user_by_email(email) is not None:
            raise ConflictError(EMAIL_TAKEN_MESSAGE)

        password_hash = await run_in_threadpool(hash_password, password, self._bcrypt_rounds)
        try:
            user = await self._store.insert_user(
                email=email,
                username=username,
                password_hash=password_hash,
                role=role or self._default_role,
                date_register=datetime.now(UTC),
            )
        except DuplicateKeyError as e:
            raise ConflictError(EMAIL_TAKEN_MESSAGE) from e

        logger.info("User registered", extra={"user_id": user.id, "role": user.role})
        return user

    async def login(self, email: str | None, username: str | None, password: str | None) -> str:
        """
        Verify credentials and return a bearer token.

        Email and username must both match the same record. Unknown users and wrong
        passwords fail identically. last_login is written before the token is issued;
        if that write fails the error propagates, and if the user was deleted meanwhile
        the login fails as invalid credentials. No token is returned in either case.
        """
        _require_fields(email, username, password)

        user = await self._store.find_user_by_credentials(email, username)
        if user is None:
            await run_in_threadpool(verify_password, password, self._dummy_hash)
            logger.info("Login failed: no matching user")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)
        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("Login failed: bad password", extra={"user_id": user.id})
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        if not await self._store.touch_last_login(user.id, datetime.now(UTC)):
            # Deleted between the credential check and the write.
            logger.info("Login failed: user vanished before last_login update", extra={"user_id": user.id})
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        token = self._tokens.issue(user.id, user.role)
        logger.info("Login succeeded", extra={"user_id": user.id, "role": user.role})
        return token
