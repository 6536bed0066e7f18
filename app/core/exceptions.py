"""
Domain exception taxonomy and their HTTP translation.

Services raise these; routes never build ``HTTPException`` for domain
failures. ``register_exception_handlers`` turns each into a JSON response.
"""

from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for all errors raised by the service layer."""

    code = "APP_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(AppError):
    """
    Malformed input, policy violation or unmet precondition.

    ``errors`` holds every violation found, in the order they were detected,
    so callers can render all of them at once.
    """

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, errors: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.errors = list(errors) if errors is not None else [message]

    @classmethod
    def from_violations(cls, violations: list[str]) -> "ValidationError":
        """Build a single error out of a complete violation list."""
        if len(violations) == 1:
            return cls(violations[0], violations)
        return cls(f"{len(violations)} validation errors", violations)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["errors"] = self.errors
        return data


class ConflictError(ValidationError):
    """A uniqueness rule was violated (duplicate pending request, grant, email)."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(AppError):
    """Presented credentials do not match."""

    code = "AUTHENTICATION_FAILED"
    status_code = status.HTTP_401_UNAUTHORIZED


class SecurityError(AppError):
    """Actor lacks the role or permission required for the action."""

    code = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN


class EntityNotFoundError(AppError):
    """Referenced account, permission or request does not exist."""

    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, identifier: Any = None):
        if identifier is None:
            message = f"{entity} not found"
        else:
            message = f"{entity} not found: {identifier}"
        super().__init__(message)
        self.entity = entity
        self.identifier = identifier


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register domain exception handlers with the FastAPI app.

    Args:
        app: Application instance
    """

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        logger.warning(
            f"{exc.code} on {request.method} {request.url.path}: {exc.message}",
            extra={"error_code": exc.code, "status_code": exc.status_code, "path": request.url.path},
        )
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)
