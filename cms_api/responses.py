"""
CMS API Response Utilities
Standardized response envelope and exception handlers
"""
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from .errors import CmsError
from .logging_config import api_logger
from .services.query import Page
from .store import DuplicateKeyError


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# ============================================================
# SUCCESS RESPONSES
# ============================================================

def success(data: Any = None, message: str = "Operation successful") -> Dict:
    """Create success response"""
    return {
        "success": True,
        "data": jsonable_encoder(data),
        "message": message,
        "timestamp": _timestamp(),
    }


def retrieved(data: Any) -> Dict:
    return success(data, "Data retrieved successfully")


def created(data: Any, message: str = "Resource created successfully") -> Dict:
    """201 Created response"""
    return success(data, message)


def updated(data: Any = None, message: str = "Resource updated successfully") -> Dict:
    return success(data, message)


def deleted(message: str = "Resource deleted successfully") -> Dict:
    return success(None, message)


def paginated(page: Page) -> Dict:
    """Paged list response"""
    return retrieved(page.to_dict())


# ============================================================
# ERROR RESPONSES
# ============================================================

def error_body(code: str, message: str, details: Optional[Any] = None) -> Dict:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = jsonable_encoder(details)
    return {"success": False, "error": error, "timestamp": _timestamp()}


_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
}


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

async def cms_error_handler(request: Request, exc: CmsError) -> JSONResponse:
    api_logger.warning(
        f"API Error: {exc.message}",
        status_code=exc.status_code,
        error_code=exc.code,
        path=request.url.path,
    )
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details),
        headers=headers,
    )


async def duplicate_key_handler(request: Request, exc: DuplicateKeyError) -> JSONResponse:
    api_logger.warning(f"Duplicate key: {exc}", path=request.url.path)
    return JSONResponse(
        status_code=409,
        content=error_body("CONFLICT", f"{exc.field} already exists", {exc.field: exc.value}),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=error_body("VALIDATION_ERROR", "Request validation failed", exc.errors()),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    api_logger.warning(f"HTTP Error: {exc.detail}", status_code=exc.status_code, path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(_HTTP_CODES.get(exc.status_code, f"HTTP_{exc.status_code}"), str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content=error_body("RATE_LIMITED", f"Too many requests: {exc.detail}"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    api_logger.error(
        f"Unexpected error: {exc}",
        error=exc,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CmsError, cms_error_handler)
    app.add_exception_handler(DuplicateKeyError, duplicate_key_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
