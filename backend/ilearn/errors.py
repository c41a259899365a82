"""Typed errors shared across the service and their HTTP rendering."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .events import error_emitter


class PermissionDeniedError(Exception):
    """Raised when the caller may not perform an operation on a resource path."""

    def __init__(self, operation: str, path: str, message: str = ""):
        self.operation = operation
        self.path = path
        self.message = message or f"Missing or insufficient permissions to {operation} '{path}'"
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"detail": self.message, "operation": self.operation, "path": self.path}


class JoinCodeGenerationError(Exception):
    """No unique join code could be drawn within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique block code after {attempts} attempts")


class AIServiceError(Exception):
    """The text-generation service failed or returned unusable output."""
    pass


def deny(operation: str, path: str) -> PermissionDeniedError:
    """Build a permission error and report it on the event bus."""
    error = PermissionDeniedError(operation, path)
    error_emitter.emit("permission-error", error)
    return error


async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=exc.to_dict())


async def join_code_handler(request: Request, exc: JoinCodeGenerationError):
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PermissionDeniedError, permission_denied_handler)
    app.add_exception_handler(JoinCodeGenerationError, join_code_handler)
