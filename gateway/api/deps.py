"""
Authorization gate applied to protected routes.

Stage 1, authenticate(): read "Authorization: Bearer <token>", verify it and attach
the decoded claims to request.state.principal. Any failure is a 401.

Stage 2, require_permission(name): a dependency factory. The produced guard loads the
principal's role and checks that it grants `name`. A missing role, an unset role,
a malformed role record or a store failure all deny with 403 (fail closed).
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request

from gateway.core.errors import (
    ExpiredTokenError,
    ForbiddenError,
    InvalidTokenError,
    StoreError,
    UnauthenticatedError,
)
from gateway.core.security import TokenClaims, TokenService
from gateway.services.authentication import AuthenticationService
from gateway.services.roles import RoleRegistry
from gateway.services.store import CredentialStore
from gateway.services.users import UserAdminService

logger = logging.getLogger(__name__)

NO_TOKEN_MESSAGE = "No token provided."
MALFORMED_TOKEN_MESSAGE = "Malformed token."
INVALID_TOKEN_MESSAGE = "Invalid or expired token."
FORBIDDEN_MESSAGE = "You do not have permission for this action."


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_store(request: Request) -> CredentialStore:
    return request.app.state.store


def get_auth_service(request: Request) -> AuthenticationService:
    return request.app.state.auth_service


def get_user_admin(request: Request) -> UserAdminService:
    return request.app.state.user_admin


def get_role_registry(request: Request) -> RoleRegistry:
    return request.app.state.role_registry


def _extract_bearer(authorization: str | None) -> str:
    if not authorization:
        raise UnauthenticatedError(NO_TOKEN_MESSAGE)
    parts = authorization.split()
    if len(parts) < 2 or parts[0].lower() != "bearer" or not parts[1]:
        raise UnauthenticatedError(MALFORMED_TOKEN_MESSAGE)
    return parts[1]


def authenticate(
    request: Request,
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> TokenClaims:
    """Dependency: require a valid bearer token and return its claims."""
    token = _extract_bearer(request.headers.get("Authorization"))
    try:
        claims = tokens.verify(token)
    except ExpiredTokenError:
        logger.info("Rejected expired token", extra={"path": request.url.path})
        raise UnauthenticatedError(INVALID_TOKEN_MESSAGE) from None
    except InvalidTokenError as e:
        logger.info(
            "Rejected invalid token", extra={"path": request.url.path, "reason": str(e)}
        )
        raise UnauthenticatedError(INVALID_TOKEN_MESSAGE) from None
    request.state.principal = claims
    return claims


async def has_permission(store: CredentialStore, role_name: str | None, permission: str) -> bool:
    """Resolve whether role_name grants permission. Never raises; errors deny."""
    if not role_name:
        return False
    try:
        role = await store.get_role(role_name)
    except StoreError:
        logger.exception(
            "Permission lookup failed; denying",
            extra={"role": role_name, "permission": permission},
        )
        return False
    if role is None:
        return False
    return role.grants(permission)


def require_permission(permission: str) -> Callable[..., Awaitable[TokenClaims]]:
    """
    Build a guard for a route that needs `permission`.

    Use as a FastAPI dependency:
        @router.delete("/deleteUsers/{user_id}")
        async def route(principal: Annotated[TokenClaims, Depends(require_permission("deleteUser"))]): ...
    """

    async def guard(
        request: Request,
        principal: Annotated[TokenClaims, Depends(authenticate)],
        store: Annotated[CredentialStore, Depends(get_store)],
    ) -> TokenClaims:
        if not await has_permission(store, principal.role, permission):
            logger.warning(
                "Permission denied",
                extra={
                    "user_id": principal.subject_id,
                    "role": principal.role,
                    "permission": permission,
                    "path": request.url.path,
                },
            )
            raise ForbiddenError(FORBIDDEN_MESSAGE)
        return principal

    guard.__name__ = f"require_{permission}"
    return guard
