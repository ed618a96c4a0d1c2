"""Password hashing and JWT issuance/verification for authentication."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from gateway.core.config import Settings
from gateway.core.errors import ExpiredTokenError, InvalidTokenError

# Bcrypt cost (rounds) used when no setting is supplied; matches the stored hashes of the
# original deployment.
BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of input.
BCRYPT_MAX_BYTES = 72


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Every call uses a fresh salt."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash. Malformed hashes verify as False."""
    pw_bytes = plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# Hashed at the configured cost and checked when no user matches a login.
DUMMY_PASSWORD = "gateway-timing-equalization"


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified bearer token."""

    subject_id: str
    role: str | None


class TokenService:
    """Issues and verifies short-lived signed bearer tokens carrying (subject id, role)."""

    def __init__(self, settings: Settings, clock: Callable[[], datetime] | None = None) -> None:
        self._secret = settings.JWT_SECRET.get_secret_value()
        self._algorithm = settings.JWT_ALGORITHM
        self._expire = timedelta(seconds=settings.JWT_EXPIRE_SECONDS)
        self._clock = clock or (lambda: datetime.now(UTC))

    def issue(self, subject_id: str, role: str | None) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(subject_id),
            "role": role,
            "iat": now,
            "exp": now + self._expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token. Pure: no store access.

        Raises ExpiredTokenError when the signature is valid but exp has passed,
        InvalidTokenError for anything else. Expiry is judged against the same clock
        that issued the token.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"], "verify_exp": False, "verify_iat": False},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError(str(e)) from e

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise InvalidTokenError("token exp must be a number")
        if exp <= self._clock().timestamp():
            raise ExpiredTokenError("token expired")

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub:
            raise InvalidTokenError("token subject missing")
        role = payload.get("role")
        if role is not None and not isinstance(role, str):
            raise InvalidTokenError("token role must be a string")
        return TokenClaims(subject_id=sub, role=role or None)
