"""Pydantic request/response schemas."""

from gateway.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from gateway.schemas.common import MessageResponse
from gateway.schemas.health import HealthResponse
from gateway.schemas.roles import (
    CreateRoleRequest,
    PermissionRequest,
    ReplacePermissionsRequest,
    RoleOut,
    RoleResponse,
    RolesListResponse,
)
from gateway.schemas.users import (
    UserOut,
    UserResponse,
    UserUpdateRequest,
    UsersListResponse,
)

__all__ = [
    "CreateRoleRequest",
    "HealthResponse",
    "LoginRequest",
    "MessageResponse",
    "PermissionRequest",
    "RegisterRequest",
    "ReplacePermissionsRequest",
    "RoleOut",
    "RoleResponse",
    "RolesListResponse",
    "TokenResponse",
    "UserOut",
    "UserResponse",
    "UserUpdateRequest",
    "UsersListResponse",
]
