"""
Global error handling middleware.

WHAT: Translate exceptions to appropriate HTTP responses
WHY: The frontend relies on one stable error envelope
HOW: FastAPI exception handlers rendering {error, status, message, detail}
"""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ..llm.types import GatewayError
from ..utils.exceptions import BusinessException
from ..utils.logger import get_logger

logger = get_logger(__name__)


def error_envelope(status_code: int, error: str, message: str, detail: Any = None) -> JSONResponse:
    """Render the shared error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "status": status_code,
            "message": message,
            "detail": detail,
        }
    )


async def gateway_error_handler(request: Request, exc: GatewayError):
    """
    Handle GatewayError.

    WHAT: Language service failed after all endpoints were tried
    WHY: Caller needs the upstream status and body to diagnose
    HOW: Reuse the upstream status (502 if unusable), pass detail through
    """
    status_code = exc.http_status
    logger.error(
        f"[DownstreamError] route={request.url.path} status={status_code} "
        f"code={exc.code} base_url={exc.base_url} message={exc.message} detail={exc.detail!r}"
    )
    return error_envelope(status_code, exc.code, exc.message, exc.detail)


def _clean_validation_errors(errors: list[dict]) -> list[dict]:
    """Make pydantic error details JSON serializable."""
    cleaned_errors = []
    for error in errors:
        cleaned_error = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
            "input": error.get("input")
        }
        # Convert ctx errors to strings
        if "ctx" in error:
            cleaned_error["ctx"] = {
                k: str(v) if isinstance(v, Exception) else v
                for k, v in error["ctx"].items()
            }
        cleaned_errors.append(cleaned_error)
    return cleaned_errors


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle FastAPI RequestValidationError.

    WHAT: Request validation failed
    WHY: Invalid request payload, e.g. a non-numeric card number
    HOW: Return 400 with field errors
    """
    logger.warning(f"Validation error: {exc.errors()}")
    return error_envelope(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        "Request validation failed",
        _clean_validation_errors(exc.errors()),
    )


async def business_exception_handler(request: Request, exc: BusinessException):
    """Handle BusinessException with its own status code."""
    logger.warning(f"API exception: {exc.code} - {exc.message}")
    return error_envelope(exc.status_code, exc.code, exc.message, exc.details)


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)

    logger.info("Exception handlers registered")
