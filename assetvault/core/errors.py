"""Error taxonomy shared by every module.

Each error carries a stable ``kind`` and the HTTP status it maps to, so the
single exception handler installed in ``main`` can render any of them as
``{"kind": ..., "message": ...}`` without knowing where it came from.
"""
import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    kind: str = "internal_error"
    status_code: int = 500
    default_message: str = "An internal server error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class UnauthenticatedError(AppError):
    kind = "unauthenticated"
    status_code = 401
    default_message = "Access denied. No token provided."


class InvalidCredentialError(AppError):
    kind = "invalid_credential"
    status_code = 401
    default_message = "Invalid token"


class NoRoleError(AppError):
    kind = "no_role"
    status_code = 401
    default_message = "No role found"


class ForbiddenError(AppError):
    kind = "forbidden"
    status_code = 403
    default_message = "Forbidden: insufficient role"


class InvalidUploadError(AppError):
    kind = "validation_error"
    status_code = 400
    default_message = "Invalid upload"


class DuplicateEmailError(AppError):
    kind = "duplicate_email"
    status_code = 400
    default_message = "User already exists"


class LoginFailedError(AppError):
    kind = "invalid_credentials"
    status_code = 400
    default_message = "Invalid email or password"


class NotFoundError(AppError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class StorageUnavailableError(AppError):
    kind = "storage_unavailable"
    status_code = 500
    default_message = "The asset ledger is unavailable"


class ObjectStoreError(AppError):
    kind = "object_store_error"
    status_code = 500
    default_message = "The object store rejected the request"


class OrphanResourceError(AppError):
    """A stored object and its ledger row disagree; needs operator reconciliation."""

    kind = "orphan_resource"
    status_code = 500
    default_message = "The operation left an unreconciled storage object"

    def __init__(self, message: str | None = None, *, key: str | None = None,
                 locator: str | None = None, asset_id: str | None = None):
        super().__init__(message)
        self.key = key
        self.locator = locator
        self.asset_id = asset_id


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"kind": "validation_error", "message": "Invalid request", "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"kind": "internal_error", "message": "An internal server error occurred."},
    )
