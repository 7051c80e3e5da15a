"""
Domain errors and exception handlers with request ID support
Standardized error response format: { code, message, status_code, details?, request_id }
"""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from typing import Optional, Dict, Any

from .logging_config import get_request_id

logger = logging.getLogger(__name__)


class LoyaltyError(Exception):
    """Base class for expected, caller-recoverable failures"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LoyaltyError):
    """Malformed or missing input"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class NotFoundError(LoyaltyError):
    """Unknown account or booking target"""
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(LoyaltyError):
    """Slot already booked or duplicate unique key"""
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class AuthenticationError(LoyaltyError):
    """Bad password, bad session token, or invalid/expired credential"""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_ERROR"


class AuthorizationError(LoyaltyError):
    """Staff-only operation called without a staff credential"""
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class DeliveryError(LoyaltyError):
    """Outbound message that is the primary effect of a request could not be sent"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "DELIVERY_FAILED"


INVALID_CODE_MESSAGE = "Invalid or expired code"


class ErrorResponse:
    """
    Standard error response format

    Schema: { code, message, status_code, details?, request_id }
    """

    @staticmethod
    def create(
        message: str,
        code: str,
        status_code: int,
        request_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> dict:
        if request_id is None:
            request_id = get_request_id()

        response = {
            "code": code,
            "message": message,
            "status_code": status_code,
        }
        if request_id:
            response["request_id"] = request_id
        if details:
            response["details"] = details
        return response


async def loyalty_error_handler(request: Request, exc: LoyaltyError) -> JSONResponse:
    """Render domain errors as structured responses"""
    logger.info(
        f"{exc.code} ({exc.status_code}) on {request.url.path}: {exc.message}",
        extra={"path": request.url.path},
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(message=exc.message, code=exc.code, status_code=exc.status_code),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with request ID"""
    error_code_map = {
        400: "BAD_REQUEST",
        401: "AUTH_ERROR",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_ERROR",
        503: "SERVICE_UNAVAILABLE",
    }
    error_code = error_code_map.get(exc.status_code, "HTTP_ERROR")
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code} error"

    logger.warning(f"HTTP {exc.status_code}: {message}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse.create(message=message, code=error_code, status_code=exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation exceptions with request ID"""
    errors = jsonable_encoder(exc.errors())
    error_messages = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in errors]
    detail = "; ".join(error_messages)

    logger.warning(f"Validation error: {detail}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse.create(
            message=f"Validation error: {detail}",
            code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"errors": errors},
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals"""
    from .config import config

    error_message = "Internal server error"
    error_details = None
    if config.ENV == "dev":
        error_message = f"Internal server error: {exc}"
        error_details = {"exception_type": type(exc).__name__}

    logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"path": request.url.path})

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse.create(
            message=error_message,
            code="INTERNAL_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=error_details,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoyaltyError, loyalty_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
