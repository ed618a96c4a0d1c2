"""Role registry endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from gateway.api.deps import authenticate, get_role_registry, require_permission
from gateway.core.security import TokenClaims
from gateway.schemas.common import MessageResponse
from gateway.schemas.roles import (
    CreateRoleRequest,
    PermissionRequest,
    ReplacePermissionsRequest,
    RoleOut,
    RoleResponse,
    RolesListResponse,
)
from gateway.services.roles import RoleRegistry

router = APIRouter()


@router.get("/getRoles", response_model=RolesListResponse)
async def get_roles(
    _principal: Annotated[TokenClaims, Depends(authenticate)],
    roles: Annotated[RoleRegistry, Depends(get_role_registry)],
) -> RolesListResponse:
    """List every role and its permissions. Any authenticated caller may read."""
    records = await roles.list_roles()
    return RolesListResponse(
        message="Roles retrieved.",
        roles=[RoleOut.from_record(r) for r in records],
    )


@router.put("/updateRol/{role_name}", response_model=RoleResponse)
async def update_role(
    role_name: str,
    body: ReplacePermissionsRequest,
    _principal: Annotated[TokenClaims, Depends(require_permission("updateRol"))],
    roles: Annotated[RoleRegistry, Depends(get_role_registry)],
) -> RoleResponse:
    """Replace the role's whole permission set."""
    record = await roles.replace_permissions(role_name, body.permissions)
    return RoleResponse(message="Role updated.", role=RoleOut.from_record(record))


@router.post(
    "/addRol",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_role(
    body: CreateRoleRequest,
    _principal: Annotated[TokenClaims, Depends(require_permission("addRol"))],
    roles: Annotated[RoleRegistry, Depends(get_role_registry)],
) -> RoleResponse:
    record = await roles.create_role(body.role_name, body.permissions)
    return RoleResponse(message="Role created.", role=RoleOut.from_record(record))


@router.delete("/deleteRol/{role_name}", response_model=MessageResponse)
async def delete_role(
    role_name: str,
    _principal: Annotated[TokenClaims, Depends(require_permission("deleteRol"))],
    roles: Annotated[RoleRegistry, Depends(get_role_registry)],
) -> MessageResponse:
    await roles.delete_role(role_name)
    return MessageResponse(message="Role deleted.")


@router.post("/addPermission/{role_name}", response_model=RoleResponse)
async def add_permission(
    role_name: str,
    body: PermissionRequest,
    _principal: Annotated[TokenClaims, Depends(require_permission("addPermission"))],
    roles: Annotated[RoleRegistry, Depends(get_role_registry)],
) -> RoleResponse:
    record = await roles.add_permission(role_name, body.permission)
    return RoleResponse(message="Permission added to role.", role=RoleOut.from_record(record))


@router.post("/deletePermission/{role_name}", response_model=RoleResponse)
async def delete_permission(
    role_name: str,
    body: PermissionRequest,
    _principal: Annotated[TokenClaims, Depends(require_permission("deletePermission"))],
    roles: Annotated[RoleRegistry, Depends(get_role_registry)],
) -> RoleResponse:
    record = await roles.remove_permission(role_name, body.permission)
    return RoleResponse(message="Permission removed from role.", role=RoleOut.from_record(record))
