from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException


class VersionConflictError(Exception):
    """
    Raised when an update carries a version that no longer matches the
    stored row. This is an expected business outcome (HTTP 409), not a
    system failure: the client gets the current server state back and
    decides how to proceed.
    """

    def __init__(
        self,
        entity_type: str,
        client_version: int,
        server_version: int,
        current_data: Dict[str, Any],
    ):
        self.entity_type = entity_type
        self.client_version = client_version
        self.server_version = server_version
        self.current_data = current_data
        super().__init__(
            f"{entity_type} version conflict: client={client_version} server={server_version}"
        )


class BusinessRuleError(StarletteHTTPException):
    """A well-formed request that the ledger rules refuse (HTTP 422)."""

    def __init__(self, detail: str):
        super().__init__(status_code=422, detail=detail)


def error_body(message: str, errors: Optional[Any] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        body["errors"] = errors
    return body


def _field_errors(raw_errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Flatten pydantic error locations into `{field: [messages]}`."""
    errors: Dict[str, List[str]] = {}
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ())]
        # Drop the request part ("body", "query", "path")
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        message = err.get("msg", "Invalid value")
        # "Value error, ..." prefixes come from our own validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.setdefault(field, []).append(message)
    return errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    errors = None if isinstance(exc.detail, str) else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(message, errors)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder(
            error_body("Validation failed", _field_errors(exc.errors()))
        ),
    )


async def version_conflict_handler(request: Request, exc: VersionConflictError):
    logger.warning(
        f"Version conflict on {exc.entity_type} "
        f"(client={exc.client_version}, server={exc.server_version}) "
        f"{request.method} {request.url.path}"
    )
    body = error_body("Version conflict detected")
    body["error"] = "The record has been modified by another user"
    body["conflict"] = True
    body["data"] = {
        "client_version": exc.client_version,
        "server_version": exc.server_version,
        "current_data": exc.current_data,
    }
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=jsonable_encoder(body),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("An unexpected error occurred while processing your request."),
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(VersionConflictError, version_conflict_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
