"""Error taxonomy and the single mapping from failure kind to HTTP response."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_INTERNAL_MESSAGE = "Internal server error."


class GatewayError(Exception):
    """Base for failures that are reported to the caller with a status code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = GENERIC_INTERNAL_MESSAGE

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required fields."


class ConflictError(GatewayError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Resource already exists."


class InvalidCredentialsError(GatewayError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials."


class UnauthenticatedError(GatewayError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated."


class ForbiddenError(GatewayError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You do not have permission for this action."


class NotFoundError(GatewayError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found."


class InternalError(GatewayError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = GENERIC_INTERNAL_MESSAGE


class StoreError(Exception):
    """Raised by the credential store when the backing database fails."""


class MalformedRecordError(StoreError):
    """A stored document does not have the expected shape."""


class TokenError(Exception):
    """Base for token verification failures; never shown to the caller verbatim."""


class InvalidTokenError(TokenError):
    """Malformed token, bad signature or missing claims."""


class ExpiredTokenError(TokenError):
    """Signature is valid but the token is past its expiry."""


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return _error_response(exc.status_code, exc.message, headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or wrongly typed request bodies are reported as 400, not FastAPI's 422."""
    logger.info(
        "Rejected malformed request",
        extra={"path": request.url.path, "errors": len(exc.errors())},
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request body.")


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.exception(
        "Store failure on %s %s", request.method, request.url.path, exc_info=exc
    )
    return _error_response(InternalError.status_code, InternalError.default_message)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return _error_response(InternalError.status_code, InternalError.default_message)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the centralized failure-kind to status mapping on the app."""
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
