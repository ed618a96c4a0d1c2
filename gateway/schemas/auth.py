"""Request/response schemas for registration and login."""

from pydantic import BaseModel, Field

# Fields are optional at the schema level so a missing field is reported by the
# service as a 400 with a readable message rather than a schema error.


class RegisterRequest(BaseModel):
    """Body of POST /register."""

    email: str | None = Field(default=None, max_length=320, description="Email (unique)")
    username: str | None = Field(default=None, max_length=255, description="Username")
    password: str | None = Field(default=None, max_length=128, description="Password")
    role: str | None = Field(
        default=None, max_length=64, description="Role name; the default role when omitted"
    )


class LoginRequest(BaseModel):
    """Credentials for login. Email and username must belong to the same user."""

    email: str | None = Field(default=None, max_length=320)
    username: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=128)


class TokenResponse(BaseModel):
    """Bearer token returned after a successful login."""

    message: str
    token: str = Field(..., description="Send as: Authorization: Bearer <token>")
