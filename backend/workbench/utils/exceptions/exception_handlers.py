"""
Global Exception Handlers

Unified handling of all API exceptions to ensure consistent error response format.
"""

import logging
import os
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from workbench.core.runtime.base import SandboxError
from workbench.utils.model.response_model import BaseResponse
from workbench.utils.model.response_code import ResponseCode
from .base_exceptions import BusinessException

logger = logging.getLogger(__name__)


def _http_status(code: int) -> int:
    """Envelope codes outside the HTTP range are reported as 400."""
    return code if 400 <= code < 600 else status.HTTP_400_BAD_REQUEST


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request parameter validation errors

    Args:
        request: Request object
        exc: Validation exception

    Returns:
        Unified format error response
    """
    logger.warning(f"Validation error on {request.url}: {exc.errors()}")

    details = [
        {"loc": list(error["loc"]), "msg": error["msg"], "type": error["type"]}
        for error in exc.errors()
    ]
    response = BaseResponse.validation_error(
        data={"details": details},
        message="; ".join(error["msg"] for error in exc.errors()),
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=response.model_dump(),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTP exceptions

    Args:
        request: Request object
        exc: HTTP exception

    Returns:
        Unified format error response
    """
    logger.warning(f"HTTP {exc.status_code} on {request.url}: {exc.detail}")
    response = BaseResponse.error(message=str(exc.detail), code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=response.model_dump())


async def business_exception_handler(request: Request, exc: BusinessException) -> JSONResponse:
    """
    Handle business logic exceptions

    Args:
        request: Request object
        exc: Business exception

    Returns:
        Unified format error response
    """
    logger.warning(f"Business error on {request.url}: {exc.message}")
    response = BaseResponse.error(message=exc.message, data=exc.data, code=exc.code)
    return JSONResponse(status_code=_http_status(exc.code), content=response.model_dump())


async def sandbox_exception_handler(request: Request, exc: SandboxError) -> JSONResponse:
    """
    Handle sandbox runtime failures (port conflicts, failed runtime commands)

    Args:
        request: Request object
        exc: Sandbox exception

    Returns:
        Unified format error response
    """
    logger.warning(f"Sandbox error on {request.url} [{exc.operation}]: {exc.message}")
    response = BaseResponse.from_sandbox_error(exc)
    return JSONResponse(status_code=_http_status(exc.code), content=response.model_dump())


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all uncaught exceptions

    Args:
        request: Request object
        exc: Exception

    Returns:
        Unified format error response
    """
    logger.error(f"Unhandled exception on {request.url}: {exc}", exc_info=True)

    # Return detailed error in development, generic error in production
    if os.getenv("ENVIRONMENT", "development") == "development":
        message = f"Internal server error: {str(exc)}"
        data = {"error_type": type(exc).__name__, "error_message": str(exc)}
    else:
        message = "Internal server error, please try again later"
        data = None

    response = BaseResponse.error(message=message, data=data, code=ResponseCode.INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response.model_dump(),
    )


def register_exception_handlers(app):
    """
    Register all exception handlers

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(SandboxError, sandbox_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
