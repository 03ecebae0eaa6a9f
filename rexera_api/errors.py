"""
API error types and exception handlers.

Every error response uses the same envelope:

    {"success": false,
     "error": {"code", "message", "details"?, "timestamp", "requestId"}}
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .primitives import generate_uuid, utc_now

logger = structlog.get_logger()


class APIError(Exception):
    """An error with an HTTP status and a machine-readable code."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Any = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class APIErrors:
    """Factory for the common API errors."""

    @staticmethod
    def not_found(resource: str, resource_id: Optional[str] = None) -> APIError:
        message = (
            f"{resource} with id {resource_id} not found"
            if resource_id
            else f"{resource} not found"
        )
        return APIError("NOT_FOUND", message, 404)

    @staticmethod
    def unauthorized(message: str = "Unauthorized") -> APIError:
        return APIError("UNAUTHORIZED", message, 401)

    @staticmethod
    def forbidden(message: str = "Forbidden") -> APIError:
        return APIError("FORBIDDEN", message, 403)

    @staticmethod
    def bad_request(message: str, details: Any = None) -> APIError:
        return APIError("BAD_REQUEST", message, 400, details)

    @staticmethod
    def conflict(message: str, details: Any = None) -> APIError:
        return APIError("CONFLICT", message, 409, details)

    @staticmethod
    def too_many_requests(message: str = "Too many requests") -> APIError:
        return APIError("TOO_MANY_REQUESTS", message, 429)

    @staticmethod
    def internal_error(message: str = "Internal server error", details: Any = None) -> APIError:
        return APIError("INTERNAL_ERROR", message, 500, details)

    @staticmethod
    def service_unavailable(service: str) -> APIError:
        return APIError(
            "SERVICE_UNAVAILABLE", f"{service} is currently unavailable", 503
        )


def get_request_id(request: Request) -> str:
    return request.headers.get("x-request-id") or generate_uuid()


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    error["timestamp"] = utc_now().isoformat()
    error["requestId"] = get_request_id(request)
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message, code}`` entries."""
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        formatted.append(
            {
                "field": ".".join(loc),
                "message": err.get("msg", ""),
                "code": err.get("type", "invalid"),
            }
        )
    return formatted


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("API error", code=exc.code, message=exc.message, path=request.url.path)
    return error_response(request, exc.status_code, exc.code, exc.message, exc.details)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(
        request,
        400,
        "VALIDATION_ERROR",
        "Request validation failed",
        format_validation_errors(exc.errors()),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    # Routes raise APIError, so a bare 404 here is an unmatched path
    if exc.status_code == 404:
        return error_response(
            request, 404, "NOT_FOUND", "The requested endpoint was not found"
        )
    return error_response(
        request, exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail)
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error", error=str(exc), path=request.url.path)
    return error_response(request, 500, "DATABASE_ERROR", "Database operation failed")


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", path=request.url.path)
    return error_response(
        request, 500, "INTERNAL_SERVER_ERROR", "An unexpected error occurred"
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
