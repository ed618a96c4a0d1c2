"""Registration and login endpoints (no authentication required)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from gateway.api.deps import get_auth_service
from gateway.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from gateway.schemas.common import MessageResponse
from gateway.services.authentication import AuthenticationService

router = APIRouter()


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    auth: Annotated[AuthenticationService, Depends(get_auth_service)],
) -> MessageResponse:
    """
    Create a user. role defaults to the configured default role.
    Does not log the user in; call /login afterwards.
    """
    await auth.register(body.email, body.username, body.password, body.role)
    return MessageResponse(message="User registered successfully.")


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    auth: Annotated[AuthenticationService, Depends(get_auth_service)],
) -> TokenResponse:
    """
    Authenticate with email, username and password; returns a short-lived bearer token.
    Include it in the Authorization header as: Bearer <token>
    """
    token = await auth.login(body.email, body.username, body.password)
    return TokenResponse(message="Login successful.", token=token)
