"""Translation of domain errors into the ``success: false`` JSON envelope."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.errors import InventoryError
from .dependencies import get_app_settings

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def handle_inventory_error(request: Request, exc: InventoryError) -> JSONResponse:
    """Return the error message, hiding server-side detail in production."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        message = exc.public_message if get_app_settings(request).is_production else exc.message
    else:
        message = exc.message
    return error_response(exc.status_code, message)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return error_response(status.HTTP_400_BAD_REQUEST, "; ".join(details) or "invalid request")


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    message = "internal error" if get_app_settings(request).is_production else f"internal error: {exc}"
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, handle_inventory_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)
