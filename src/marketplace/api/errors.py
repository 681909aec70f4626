"""Error kind → HTTP status mapping for the API.

    validation errors            400  {"errors": {field: [messages]}}
    invalid state                400  {"error": ..., "errors": ...}
    insufficient funds           400  {"error": ..., "available_balance": ...}
    missing identity             401
    wrong role or ownership      403
    not found                    404
    version conflict             409
    anything else                500  {"error": "Internal server error"}
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from marketplace.domain import logger
from marketplace.exceptions import (
    AuthenticationRequired,
    InsufficientFundsError,
    InvalidStateError,
    PermissionDenied,
)
from marketplace.shared.money import format_money


def _messages(exc) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    return {"_entity": [str(messages or exc)]}


def _first_message(exc) -> str:
    for value in _messages(exc).values():
        if isinstance(value, list | tuple) and value:
            return str(value[0])
        return str(value)
    return str(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(location) or "_request", []).append(error.get("msg", "Invalid value"))
    return JSONResponse(status_code=400, content={"errors": errors})


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"errors": _messages(exc)})


async def invalid_state_handler(request: Request, exc: InvalidStateError):
    return JSONResponse(status_code=400, content={"error": _first_message(exc), "errors": _messages(exc)})


async def insufficient_funds_handler(request: Request, exc: InsufficientFundsError):
    return JSONResponse(
        status_code=400,
        content={
            "error": _first_message(exc),
            "available_balance": format_money(exc.available_balance),
        },
    )


async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    return JSONResponse(status_code=404, content={"error": _first_message(exc)})


async def authentication_required_handler(request: Request, exc: AuthenticationRequired):
    return JSONResponse(status_code=401, content={"error": str(exc) or "Authentication required"})


async def permission_denied_handler(request: Request, exc: PermissionDenied):
    return JSONResponse(status_code=403, content={"error": str(exc) or "Forbidden"})


async def version_conflict_handler(request: Request, exc: ExpectedVersionError):
    logger.warning("version_conflict", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=409,
        content={"error": "The resource was modified concurrently, please retry"},
    )


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    """Install the handlers on ``app``, replacing Protean's defaults where they overlap."""
    register_exception_handlers(app)

    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(InvalidStateError, invalid_state_handler)
    app.add_exception_handler(InsufficientFundsError, insufficient_funds_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(AuthenticationRequired, authentication_required_handler)
    app.add_exception_handler(PermissionDenied, permission_denied_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
