"""HTTP mapping for the order/review failure taxonomy.

Each failure type gets its own status code and a body of the form
``{"error": <code>, "messages": {...}}``. Protean's own handlers still cover
plain ``ValidationError`` and ``ObjectNotFoundError``.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from pharmacy.shared.errors import (
    AlreadyDelivered,
    Conflict,
    Forbidden,
    InvalidPrice,
    InvalidReference,
    InvalidState,
    InvalidTransition,
    NotFound,
    PreconditionFailed,
)

STATUS_CODES = {
    PreconditionFailed: 400,
    InvalidReference: 400,
    InvalidPrice: 400,
    InvalidState: 400,
    InvalidTransition: 400,
    AlreadyDelivered: 400,
    Forbidden: 403,
    NotFound: 404,
    Conflict: 409,
}


async def _domain_error_handler(request: Request, exc) -> JSONResponse:
    status_code = STATUS_CODES.get(type(exc), 400)
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "messages": exc.messages},
    )


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for exc_cls in STATUS_CODES:
        app.add_exception_handler(exc_cls, _domain_error_handler)
