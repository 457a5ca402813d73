"""
Storefront Backend — Error Envelope Rendering
===============================================

Turns exceptions into the JSON error envelope:

    {"status": "Failed", "statusCode": 404, "error": "not_found",
     "message": "...", "details": {...}, "requestId": "1f2e3d4c"}

Used by the global exception handlers in main.py and by middleware, which
runs outside FastAPI's exception handling and must build its own response.
"""

import logging
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from app.exceptions import StorefrontError
from app.middleware.request_id import request_id_var
from app.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    request_id: Optional[str] = None,
) -> JSONResponse:
    body = ErrorResponse(
        status_code=status_code,
        error=error,
        message=message,
        details=details or None,
        request_id=request_id or request_id_var.get("") or None,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers=headers,
    )


def storefront_error_response(exc: StorefrontError, request_id: Optional[str] = None) -> JSONResponse:
    """Render any StorefrontError; context is only exposed for client-fixable errors."""
    rid = request_id or request_id_var.get("")
    if exc.status_code >= 500:
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
    else:
        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

    return error_response(
        status_code=exc.status_code,
        error=exc.error_code,
        message=exc.message,
        details=exc.context if exc.expose_context else None,
        headers=exc.headers or None,
        request_id=rid,
    )
