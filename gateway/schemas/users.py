"""Schemas for the user administration endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserOut(BaseModel):
    """User as returned to admins. The password hash is never serialized."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    username: str
    role: str
    date_register: datetime
    last_login: datetime | None = None


class UsersListResponse(BaseModel):
    message: str
    users: list[UserOut]


class UserUpdateRequest(BaseModel):
    """Body of PUT /updateUsers/{id}; only non-empty fields are applied."""

    email: str | None = Field(default=None, max_length=320)
    username: str | None = Field(default=None, max_length=255)
    role: str | None = Field(default=None, max_length=64)


class UserResponse(BaseModel):
    message: str
    user: UserOut
