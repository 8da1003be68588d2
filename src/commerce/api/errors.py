"""Exception handlers that render failures in the ``{success, error}`` envelope."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from commerce.errors import CommerceError

logger = structlog.get_logger(__name__)


def error_response(status_code: int, kind: str, message: str, details=None) -> JSONResponse:
    error = {"kind": kind, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def _flatten(messages) -> str:
    if isinstance(messages, dict):
        return "; ".join(f"{field}: {', '.join(map(str, errors))}" for field, errors in messages.items())
    return str(messages)


async def handle_commerce_error(request: Request, exc: CommerceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, kind=exc.kind, error=exc.message)
    return error_response(exc.status_code, exc.kind, exc.message, exc.details or None)


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return error_response(400, "ValidationError", _flatten(exc.messages), exc.messages)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = {".".join(str(part) for part in err["loc"]): [err["msg"]] for err in exc.errors()}
    return error_response(400, "ValidationError", _flatten(details), details)


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return error_response(404, "NotFound", str(exc) or "Resource not found")


async def handle_conflict(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.warning("Concurrent update rejected", path=request.url.path, error=str(exc))
    return error_response(409, "Conflict", "The resource was changed by another request, please retry")


def install_error_handlers(app: FastAPI) -> None:
    """Protean's defaults first, then the envelope handlers on top."""
    register_exception_handlers(app)
    app.add_exception_handler(CommerceError, handle_commerce_error)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(ExpectedVersionError, handle_conflict)
