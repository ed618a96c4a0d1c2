"""Schemas for the role registry endpoints."""

from pydantic import BaseModel, Field

from gateway.services.store import RoleRecord


class RoleOut(BaseModel):
    role_name: str
    permissions: list[str]

    @classmethod
    def from_record(cls, role: RoleRecord) -> "RoleOut":
        return cls(role_name=role.name, permissions=sorted(role.permissions))


class RolesListResponse(BaseModel):
    message: str
    roles: list[RoleOut]


class RoleResponse(BaseModel):
    message: str
    role: RoleOut


class CreateRoleRequest(BaseModel):
    """Body of POST /addRol."""

    role_name: str | None = Field(default=None, max_length=64)
    permissions: list[str] | None = None


class ReplacePermissionsRequest(BaseModel):
    """Body of PUT /updateRol/{roleName}."""

    permissions: list[str] | None = None


class PermissionRequest(BaseModel):
    """Body of POST /addPermission/{roleName} and /deletePermission/{roleName}."""

    permission: str | None = Field(default=None, max_length=128)
