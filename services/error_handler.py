"""
Error Handling for the Hydra API

Maps the HydraException hierarchy onto HTTP responses. Provider and
reference-source failures never reach this layer (they are absorbed
inside the pipeline); what arrives here is bad input, missing
configuration, or an upstream service error on a direct call.

Usage:
    from services.error_handler import setup_error_handlers

    app = FastAPI()
    setup_error_handlers(app)
"""

import logging
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from services.exceptions import (
    HydraException,
    ExternalServiceError,
    ValidationError,
    ConfigurationError,
)

logger = logging.getLogger(__name__)


def get_status_code(exc: HydraException) -> int:
    if isinstance(exc, ValidationError):
        return 400
    elif isinstance(exc, ConfigurationError):
        return 503
    elif isinstance(exc, ExternalServiceError):
        return 502
    return 500


def create_error_response(
    error: HydraException,
    status_code: int = 500,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Create a standardized JSON error response."""
    response_data = error.to_dict()

    if request:
        response_data["path"] = str(request.url.path)
        response_data["method"] = request.method

    return JSONResponse(status_code=status_code, content=response_data)


async def handle_hydra_exception(request: Request, exc: HydraException) -> JSONResponse:
    status_code = get_status_code(exc)

    log_level = logging.WARNING if status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"[{exc.code}] {exc.message}",
        extra={"details": exc.details, "cause": str(exc.cause) if exc.cause else None},
    )
    return create_error_response(exc, status_code, request)


def setup_error_handlers(app: FastAPI, debug: bool = False):
    """
    Register exception handlers on the app.

    Args:
        app: The FastAPI application instance
        debug: If True, unexpected errors include exception type and traceback
    """

    @app.exception_handler(HydraException)
    async def hydra_exception_handler(request: Request, exc: HydraException):
        return await handle_hydra_exception(request, exc)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception in {request.url.path}: {type(exc).__name__}: {exc}",
            exc_info=True,
        )
        content = {
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "path": str(request.url.path),
        }
        if debug:
            content["debug"] = {
                "exception": type(exc).__name__,
                "message": str(exc),
                "traceback": traceback.format_exc(),
            }
        return JSONResponse(status_code=500, content=content)

    logger.info(f"[ERROR HANDLER] Configured (debug={debug})")
