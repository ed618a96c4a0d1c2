"""User administration endpoints, each gated by its own permission."""

from typing import Annotated

from fastapi import APIRouter, Depends

from gateway.api.deps import get_user_admin, require_permission
from gateway.core.security import TokenClaims
from gateway.schemas.common import MessageResponse
from gateway.schemas.users import UserOut, UserResponse, UserUpdateRequest, UsersListResponse
from gateway.services.users import UserAdminService

router = APIRouter()


@router.get("/getUsers", response_model=UsersListResponse)
async def get_users(
    _principal: Annotated[TokenClaims, Depends(require_permission("getUser"))],
    users: Annotated[UserAdminService, Depends(get_user_admin)],
) -> UsersListResponse:
    records = await users.list_users()
    return UsersListResponse(
        message="Users retrieved.",
        users=[UserOut.model_validate(u) for u in records],
    )


@router.delete("/deleteUsers/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    _principal: Annotated[TokenClaims, Depends(require_permission("deleteUser"))],
    users: Annotated[UserAdminService, Depends(get_user_admin)],
) -> MessageResponse:
    await users.delete_user(user_id)
    return MessageResponse(message="User deleted.")


@router.put("/updateUsers/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    _principal: Annotated[TokenClaims, Depends(require_permission("updateUser"))],
    users: Annotated[UserAdminService, Depends(get_user_admin)],
) -> UserResponse:
    """Change email, username and/or role. A role change applies to tokens issued afterwards."""
    record = await users.update_user(user_id, body.email, body.username, body.role)
    return UserResponse(message="User updated.", user=UserOut.model_validate(record))
